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
The polishing contract: what is sent to the LLM and how its reply is merged.

The AI is trusted for narrative content only. Whatever it returns for the
photo, theme colour or target-job fields is discarded in favour of the
values the user had before the call.
"""

import dataclasses
import json
import logging
import textwrap
from typing import Any, Dict, Tuple

from cv_forge.errors import ParseError, ValidationError
from cv_forge.models import CVData

logger = logging.getLogger(__name__)

PROTECTED_FIELDS = (
    "photo_url",
    "target_company",
    "target_role",
    "target_job_description",
    "theme_color",
)

SYSTEM_INSTRUCTION = "You are a helpful, professional career coach and resume expert."

VALIDATION_MESSAGE = "Please enter at least a name or some experience before generating."
FAILURE_MESSAGE = "Failed to generate CV. Please check your API key and try again."

# Shape description for providers without schema enforcement.
CV_SHAPE_DESCRIPTION = """
{
  "fullName": "string",
  "email": "string",
  "phone": "string",
  "location": "string",
  "linkedin": "string",
  "website": "string",
  "headline": "string (job title or professional headline)",
  "summary": "string",
  "skills": "string (comma separated list)",
  "interests": "string (comma separated list)",
  "experience": [
    {"id": "string", "jobTitle": "string", "company": "string", "startDate": "string",
     "endDate": "string", "description": "string (polished, achievement-oriented)"}
  ],
  "education": [
    {"id": "string", "school": "string", "degree": "string", "startDate": "string",
     "endDate": "string", "description": "string"}
  ],
  "awards": [
    {"id": "string", "title": "string", "issuer": "string", "date": "string", "description": "string"}
  ],
  "memberships": [
    {"id": "string", "role": "string", "organization": "string", "date": "string"}
  ]
}"""


def check_ready(cv: CVData) -> None:
    """Refuses to polish a CV with neither a name nor any experience."""
    if not cv.full_name and not cv.experience:
        raise ValidationError(VALIDATION_MESSAGE)


def payload_for_ai(cv: CVData) -> Dict[str, Any]:
    """The camelCase record sent to the provider. The photo never leaves."""
    payload = cv.to_dict()
    payload.pop("photoUrl", None)
    return payload


def build_prompt(cv: CVData) -> str:
    payload = payload_for_ai(cv)
    return textwrap.dedent("""
        You are an expert professional resume writer.
        I will provide you with rough data for a Curriculum Vitae.

        CONTEXT - TARGET JOB:
        The user is applying to: {company}
        Target Role Title: {role}
        Target Job Description/Notes: {description}

        Your task is to:
        1. Correct any grammar or spelling errors.
        2. Rewrite the "summary" to be professional, concise, and impactful. IMPORTANT: Tailor the summary to align with the Target Job Context provided above (keywords, tone, specific skills). If no target is given, keep a generic professional tone.
        3. Rewrite job "description" fields to use strong action verbs and bullet points (using • or similar characters), focusing on achievements. Highlight experiences relevant to the Target Job.
        4. Rewrite award "description" fields if they exist, making them sound significant.
        5. Keep the structure strictly valid JSON.
        6. Maintain all existing IDs. If an ID is missing, generate a short random one.
        7. If a field is empty in the input, leave it empty or provide a professional placeholder. Do not invent employers, dates, figures or other specifics.
        8. Format the "skills" and "interests" strings as clean, comma-separated lists. They must stay strings, not arrays.

        Here is the rough data:
        {data}
    """).format(
        company=cv.target_company or "General Application",
        role=cv.target_role or "N/A",
        description=cv.target_job_description or "N/A",
        data=json.dumps(payload, ensure_ascii=False),
    )


def build_messages(cv: CVData) -> Tuple[str, str]:
    """System and user prompts for free-text (non schema-enforced) providers."""
    system = (
        "You are an expert professional resume writer.\n"
        "You must respond ONLY with valid JSON matching this exact schema:\n"
        f"{CV_SHAPE_DESCRIPTION}\n\n"
        "Do not include any markdown formatting, code blocks, or explanatory text. "
        "Return only the raw JSON object."
    )
    return system, build_prompt(cv)


def clean_json(text: str) -> str:
    """Strips ```json / ``` fences around an LLM reply."""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):]
    if cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_polished(raw: str) -> Dict[str, Any]:
    """Decodes the provider reply into a dict. Anything else is a ParseError."""
    try:
        data = json.loads(clean_json(raw))
    except json.JSONDecodeError as e:
        raise ParseError(f"Provider reply is not valid JSON: {e}", raw=raw) from e
    if not isinstance(data, dict):
        raise ParseError(f"Provider reply is not a JSON object ({type(data).__name__})", raw=raw)
    return data


def merge_polished(before: CVData, polished: Dict[str, Any]) -> CVData:
    """
    Replaces ``before`` with the polished record, restoring protected fields.

    Returned sections are taken wholesale: no reconciliation by id or order.
    Missing or null ``awards``/``memberships`` become empty, a missing
    ``interests`` becomes "".
    """
    result = CVData.from_dict(polished)
    return dataclasses.replace(
        result,
        **{name: getattr(before, name) for name in PROTECTED_FIELDS},
    )


def polish_cv(cv: CVData, client) -> CVData:
    """
    One polish round trip: send ``cv`` through ``client`` and merge the reply.

    ``client`` must expose ``complete(cv) -> str`` (see ``cv_forge.llm_client``).
    Callers run ``check_ready`` first.
    """
    raw = client.complete(cv)
    logger.debug(f"Polish reply received ({len(raw)} chars)")
    try:
        return merge_polished(cv, parse_polished(raw))
    except ParseError as e:
        if not e.raw:
            e.raw = raw
        raise
