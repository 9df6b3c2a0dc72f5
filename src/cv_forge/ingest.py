# Copyright 2026 Justin Cook
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Reading local and remote inputs: profile photos and target job descriptions.
"""

import base64
import logging
import mimetypes
from pathlib import Path

import requests
from bs4 import BeautifulSoup
from docx import Document
from pypdf import PdfReader

from cv_forge.config import DEFAULT_MAX_PHOTO_BYTES, get_ca_bundle
from cv_forge.errors import PhotoError

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)


def read_photo(path: str, max_bytes: int = DEFAULT_MAX_PHOTO_BYTES) -> str:
    """
    Encodes an image file as a ``data:`` URL suitable for ``photoUrl``.
    """
    file_path = Path(path)
    mime, _ = mimetypes.guess_type(file_path.name)
    if not mime or not mime.startswith("image/"):
        raise PhotoError(f"{file_path.name} is not an image file")

    try:
        size = file_path.stat().st_size
    except OSError as e:
        raise PhotoError(f"Cannot read photo {path}: {e}") from e
    if size > max_bytes:
        raise PhotoError(f"Photo is {size} bytes; the limit is {max_bytes} bytes")

    encoded = base64.b64encode(file_path.read_bytes()).decode("ascii")
    logger.info(f"Loaded photo {file_path.name} ({size} bytes, {mime})")
    return f"data:{mime};base64,{encoded}"


def decode_data_url(data_url: str) -> bytes | None:
    """Returns the bytes of a base64 data URL, or None if it is not one."""
    if not data_url or not data_url.startswith("data:"):
        return None
    header, _, payload = data_url.partition(",")
    if not header.endswith(";base64") or not payload:
        return None
    try:
        return base64.b64decode(payload, validate=True)
    except ValueError:
        logger.warning("Photo data URL is not valid base64")
        return None


def read_docx(file_path: str) -> str:
    try:
        doc = Document(file_path)
        return "\n".join(para.text for para in doc.paragraphs)
    except Exception as e:
        logger.error(f"Error reading {file_path}: {e}")
        return ""


def read_pdf(file_path: str) -> str:
    try:
        reader = PdfReader(file_path)
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    except Exception as e:
        logger.error(f"Error reading PDF {file_path}: {e}")
        return ""


def _extract_text_from_html(html) -> str:
    """Extracts clean text from raw HTML content."""
    soup = BeautifulSoup(html, "html.parser")

    for script in soup(["script", "style"]):
        script.decompose()

    lines = (line.strip() for line in soup.get_text().splitlines())
    # Break multi-headlines into a line each
    chunks = (phrase.strip() for line in lines for phrase in line.split("  "))
    return "\n".join(chunk for chunk in chunks if chunk)


def read_url(url: str, timeout: float = 15) -> str:
    """Fetches a job posting and returns its visible text."""
    try:
        response = requests.get(
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=timeout,
            verify=get_ca_bundle(),
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Failed to fetch {url}: {e}")
        return ""
    return _extract_text_from_html(response.content)


def read_job_description(source: str) -> str:
    """
    Loads target job description text from a URL, or a DOCX, PDF or plain
    text file. Returns "" when nothing could be read.
    """
    if source.startswith(("http://", "https://")):
        logger.info(f"Fetching job description from: {source}")
        return read_url(source)

    lower = source.lower()
    if lower.endswith(".docx"):
        return read_docx(source)
    if lower.endswith(".pdf"):
        return read_pdf(source)
    try:
        return Path(source).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read job description file: {e}")
        return ""
