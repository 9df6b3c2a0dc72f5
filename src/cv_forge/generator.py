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
Renders CVData into a styled DOCX document.

Three interchangeable layouts share one interface (``render(data, document)``):
modern (two columns), classic (centred, serif) and minimal (label column).
Templates hold no data; the theme colour comes from the CV itself.
"""

import io
import logging
import re
from typing import Protocol

from docx import Document
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import (
    InvalidImageStreamError,
    UnexpectedEndOfFileError,
    UnrecognizedImageError,
)
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt, RGBColor

from cv_forge.ingest import decode_data_url
from cv_forge.models import CVData

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
# One leading marker; ASCII markers need a following space so "-5%" stays text.
_BULLET_MARKER = re.compile(r"^(?:[•➢▪–]\s*|[-*]\s+)")


def theme_rgb(color: str, default: str) -> RGBColor:
    """Parses a #rgb/#rrggbb colour, falling back to ``default``."""
    match = _HEX_COLOR.match((color or "").strip()) or _HEX_COLOR.match(default)
    value = match.group(1)
    if len(value) == 3:
        value = "".join(c * 2 for c in value)
    return RGBColor.from_string(value.upper())


def split_list(text: str) -> list:
    """Display-only split of a comma-separated skills/interests string."""
    return [part.strip() for part in (text or "").split(",") if part.strip()]


def description_lines(text: str) -> list:
    """
    Splits a free-text description into (is_bullet, text) lines, dropping the
    bullet markers the user or the AI typed.
    """
    lines = []
    for line in (text or "").splitlines():
        line = line.strip()
        if not line:
            continue
        marker = _BULLET_MARKER.match(line)
        if marker:
            lines.append((True, line[marker.end():].strip()))
        else:
            lines.append((False, line))
    return lines


def date_range(start: str, end: str) -> str:
    if start and end:
        return f"{start} – {end}"
    return start or end or ""


def contact_items(data: CVData) -> list:
    return [v for v in (data.email, data.phone, data.location, data.linkedin, data.website) if v]


def _paragraph(container, text: str = "", style: str = None):
    """
    Adds a paragraph to a document or table cell. A fresh cell's initial
    empty paragraph is reused instead of leaving a blank line at the top.
    """
    paragraphs = getattr(container, "paragraphs", [])
    if hasattr(container, "_tc") and len(paragraphs) == 1 and not paragraphs[0].runs:
        p = paragraphs[0]
        if text:
            p.add_run(text)
        if style:
            p.style = style
        return p
    return container.add_paragraph(text, style=style)


def _run(paragraph, text: str, bold: bool = False, italic: bool = False,
         size: float = None, color: RGBColor = None):
    run = paragraph.add_run(text)
    run.bold = bold
    run.italic = italic
    if size:
        run.font.size = Pt(size)
    if color is not None:
        run.font.color.rgb = color
    return run


def _rule_below(paragraph, color: RGBColor):
    """Draws a thin bottom border under a heading paragraph."""
    p_pr = paragraph._p.get_or_add_pPr()
    borders = OxmlElement("w:pBdr")
    bottom = OxmlElement("w:bottom")
    bottom.set(qn("w:val"), "single")
    bottom.set(qn("w:sz"), "6")
    bottom.set(qn("w:space"), "1")
    bottom.set(qn("w:color"), str(color))
    borders.append(bottom)
    p_pr.append(borders)


def _add_description(container, text: str):
    for is_bullet, line in description_lines(text):
        p = _paragraph(container, line, style="List Bullet" if is_bullet else None)
        p.paragraph_format.widow_control = True


def _add_photo(container, data_url: str, width: float):
    """Embeds a base64 data URL photo; returns its paragraph, or None if skipped."""
    image = decode_data_url(data_url)
    if not image:
        return None
    try:
        p = _paragraph(container)
        p.add_run().add_picture(io.BytesIO(image), width=Inches(width))
        return p
    except UnrecognizedImageError:
        logger.warning("Skipping photo: image format not supported by Word")
        return None
    except (UnexpectedEndOfFileError, InvalidImageStreamError) as e:
        logger.warning(f"Skipping photo: image data is truncated or corrupt ({e})")
        return None


class LayoutTemplate(Protocol):
    name: str
    default_color: str

    def render(self, data: CVData, document) -> None:
        ...


class ModernTemplate:
    """Two columns: a sidebar for contact details and lists, a main column for history."""
    name = "modern"
    default_color = "#4f46e5"

    def render(self, data: CVData, document) -> None:
        color = theme_rgb(data.theme_color, self.default_color)

        p = document.add_paragraph()
        _run(p, data.full_name or "Your Name", bold=True, size=26, color=color)
        if data.headline:
            _run(document.add_paragraph(), data.headline, size=13)

        table = document.add_table(rows=1, cols=2)
        table.autofit = False
        sidebar, main = table.rows[0].cells
        sidebar.width = Inches(2.3)
        main.width = Inches(4.7)

        if data.photo_url:
            _add_photo(sidebar, data.photo_url, width=1.4)

        contacts = contact_items(data)
        if contacts:
            self._heading(sidebar, "Contact", color)
            for item in contacts:
                _paragraph(sidebar, item)

        skills = split_list(data.skills)
        if skills:
            self._heading(sidebar, "Skills", color)
            for skill in skills:
                _paragraph(sidebar, skill, style="List Bullet")

        interests = split_list(data.interests)
        if interests:
            self._heading(sidebar, "Interests", color)
            _paragraph(sidebar, ", ".join(interests))

        if data.memberships:
            self._heading(sidebar, "Memberships", color)
            for m in data.memberships:
                p = _paragraph(sidebar)
                _run(p, m.role, bold=True)
                _paragraph(sidebar, " · ".join(v for v in (m.organization, m.date) if v))

        if data.summary:
            self._heading(main, "Profile", color)
            _paragraph(main, data.summary)

        if data.experience:
            self._heading(main, "Experience", color)
            for job in data.experience:
                p = _paragraph(main)
                _run(p, job.job_title, bold=True)
                if job.company:
                    _run(p, f" at {job.company}", color=color)
                p.paragraph_format.keep_with_next = True
                dates = date_range(job.start_date, job.end_date)
                if dates:
                    _run(_paragraph(main), dates, italic=True, size=9)
                _add_description(main, job.description)

        if data.education:
            self._heading(main, "Education", color)
            for edu in data.education:
                p = _paragraph(main)
                _run(p, edu.degree, bold=True)
                if edu.school:
                    _run(p, f", {edu.school}")
                dates = date_range(edu.start_date, edu.end_date)
                if dates:
                    _run(_paragraph(main), dates, italic=True, size=9)
                _add_description(main, edu.description)

        if data.awards:
            self._heading(main, "Awards", color)
            for award in data.awards:
                p = _paragraph(main)
                _run(p, award.title, bold=True)
                meta = " · ".join(v for v in (award.issuer, award.date) if v)
                if meta:
                    _run(p, f" · {meta}")
                _add_description(main, award.description)

    def _heading(self, container, text: str, color: RGBColor):
        p = _paragraph(container)
        _run(p, text.upper(), bold=True, size=11, color=color)
        p.paragraph_format.space_before = Pt(10)
        p.paragraph_format.keep_with_next = True
        return p


class ClassicTemplate:
    """Centred header, serif type and ruled section headings."""
    name = "classic"
    default_color = "#111827"
    font_name = "Georgia"

    def render(self, data: CVData, document) -> None:
        color = theme_rgb(data.theme_color, self.default_color)
        document.styles["Normal"].font.name = self.font_name

        p = document.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _run(p, data.full_name or "Your Name", bold=True, size=24, color=color)

        if data.headline:
            p = document.add_paragraph()
            p.alignment = WD_ALIGN_PARAGRAPH.CENTER
            _run(p, data.headline, italic=True, size=12)

        contacts = contact_items(data)
        if contacts:
            p = document.add_paragraph(" | ".join(contacts))
            p.alignment = WD_ALIGN_PARAGRAPH.CENTER

        photo = _add_photo(document, data.photo_url, width=1.2) if data.photo_url else None
        if photo is not None:
            photo.alignment = WD_ALIGN_PARAGRAPH.CENTER

        if data.summary:
            self._heading(document, "Professional Summary", color)
            document.add_paragraph(data.summary)

        if data.experience:
            self._heading(document, "Experience", color)
            for job in data.experience:
                p = document.add_paragraph()
                _run(p, job.company.upper() if job.company else "", bold=True)
                dates = date_range(job.start_date, job.end_date)
                if dates:
                    _run(p, f" | {dates}", italic=True)
                p.paragraph_format.keep_with_next = True
                if job.job_title:
                    _run(document.add_paragraph(), job.job_title, italic=True)
                _add_description(document, job.description)

        if data.education:
            self._heading(document, "Education", color)
            for edu in data.education:
                p = document.add_paragraph()
                _run(p, edu.school, bold=True)
                dates = date_range(edu.start_date, edu.end_date)
                if dates:
                    _run(p, f" | {dates}", italic=True)
                if edu.degree:
                    document.add_paragraph(edu.degree)
                _add_description(document, edu.description)

        if data.awards:
            self._heading(document, "Awards & Honours", color)
            for award in data.awards:
                p = document.add_paragraph()
                _run(p, award.title, bold=True)
                meta = ", ".join(v for v in (award.issuer, award.date) if v)
                if meta:
                    _run(p, f" ({meta})")
                _add_description(document, award.description)

        skills = split_list(data.skills)
        if skills:
            self._heading(document, "Skills", color)
            document.add_paragraph(" • ".join(skills))

        if data.memberships:
            self._heading(document, "Memberships", color)
            for m in data.memberships:
                p = document.add_paragraph()
                _run(p, m.role, bold=True)
                rest = ", ".join(v for v in (m.organization, m.date) if v)
                if rest:
                    _run(p, f", {rest}")

        interests = split_list(data.interests)
        if interests:
            self._heading(document, "Interests", color)
            document.add_paragraph(", ".join(interests))

    def _heading(self, document, text: str, color: RGBColor):
        p = document.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _run(p, text.upper(), bold=True, size=12, color=color)
        p.paragraph_format.space_before = Pt(12)
        p.paragraph_format.keep_with_next = True
        _rule_below(p, color)
        return p


class MinimalTemplate:
    """A narrow label column beside each section's content."""
    name = "minimal"
    default_color = "#475569"

    def render(self, data: CVData, document) -> None:
        color = theme_rgb(data.theme_color, self.default_color)

        if data.photo_url:
            _add_photo(document, data.photo_url, width=1.0)

        p = document.add_paragraph()
        _run(p, data.full_name or "Your Name", size=22)
        if data.headline:
            _run(document.add_paragraph(), data.headline, color=color)
        contacts = contact_items(data)
        if contacts:
            _run(document.add_paragraph(), "  ·  ".join(contacts), size=9)

        table = document.add_table(rows=0, cols=2)
        table.alignment = WD_TABLE_ALIGNMENT.LEFT
        table.autofit = False

        if data.summary:
            _paragraph(self._row(table, "About", color), data.summary)

        if data.experience:
            cell = self._row(table, "Experience", color)
            for job in data.experience:
                p = _paragraph(cell)
                _run(p, job.job_title, bold=True)
                if job.company:
                    _run(p, f", {job.company}")
                dates = date_range(job.start_date, job.end_date)
                if dates:
                    _run(_paragraph(cell), dates, size=9, color=color)
                _add_description(cell, job.description)

        if data.education:
            cell = self._row(table, "Education", color)
            for edu in data.education:
                p = _paragraph(cell)
                _run(p, edu.degree, bold=True)
                if edu.school:
                    _run(p, f", {edu.school}")
                dates = date_range(edu.start_date, edu.end_date)
                if dates:
                    _run(_paragraph(cell), dates, size=9, color=color)
                _add_description(cell, edu.description)

        if data.awards:
            cell = self._row(table, "Awards", color)
            for award in data.awards:
                p = _paragraph(cell)
                _run(p, award.title, bold=True)
                meta = ", ".join(v for v in (award.issuer, award.date) if v)
                if meta:
                    _run(p, f", {meta}")
                _add_description(cell, award.description)

        skills = split_list(data.skills)
        if skills:
            _paragraph(self._row(table, "Skills", color), ", ".join(skills))

        if data.memberships:
            cell = self._row(table, "Memberships", color)
            for m in data.memberships:
                _paragraph(cell, ", ".join(v for v in (m.role, m.organization, m.date) if v))

        interests = split_list(data.interests)
        if interests:
            _paragraph(self._row(table, "Interests", color), ", ".join(interests))

    def _row(self, table, label: str, color: RGBColor):
        """Appends a label/content row and returns the content cell."""
        label_cell, content_cell = table.add_row().cells
        label_cell.width = Inches(1.4)
        content_cell.width = Inches(5.6)
        _run(_paragraph(label_cell), label.upper(), bold=True, size=9, color=color)
        return content_cell


TEMPLATES = {
    "modern": ModernTemplate(),
    "classic": ClassicTemplate(),
    "minimal": MinimalTemplate(),
}
DEFAULT_TEMPLATE = "modern"


class CVGenerator:
    """
    Generates a DOCX resume from CVData using one of the layout templates.
    """
    def __init__(self, template: str = DEFAULT_TEMPLATE):
        if template not in TEMPLATES:
            raise ValueError(f"Unknown template '{template}'. Expected one of {', '.join(TEMPLATES)}")
        self.template = TEMPLATES[template]
        self.document = Document()
        self._setup_styles()

    def _setup_styles(self):
        font = self.document.styles["Normal"].font
        font.name = "Calibri"
        font.size = Pt(10.5)

    def build(self, data: CVData):
        """Renders ``data`` into the generator's document and returns it."""
        self.template.render(data, self.document)
        return self.document

    def generate(self, data: CVData, output_filename: str):
        """
        Renders and saves the document.

        Args:
            data (CVData): The CV to render.
            output_filename (str): The path to save the generated DOCX.
        """
        self.build(data)
        self.document.save(output_filename)
        logger.info(f"CV generated successfully ({self.template.name}): {output_filename}")
