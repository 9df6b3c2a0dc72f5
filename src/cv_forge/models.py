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
Data models for the CV Forge application.

A CV is one immutable ``CVData`` value. Edits never mutate it; they build a
new value with ``dataclasses.replace`` (see ``cv_forge.editor``). On disk and
on the wire the record uses camelCase keys (``fullName``, ``jobTitle`` ...),
which ``to_dict``/``from_dict`` translate to and from the snake_case
attributes used in Python.
"""

import random
import re
import string
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, Tuple

from cv_forge.errors import ParseError

DEFAULT_THEME_COLOR = "#4f46e5"  # Indigo

THEME_COLORS = (
    "#111827",  # Gray-900 (Black)
    "#4f46e5",  # Indigo-600
    "#2563eb",  # Blue-600
    "#059669",  # Emerald-600
    "#dc2626",  # Red-600
    "#7c3aed",  # Violet-600
    "#ea580c",  # Orange-600
    "#be185d",  # Pink-700
)

ID_LENGTH = 9
_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id(taken: Iterable[str] = ()) -> str:
    """Returns a short random base-36 id not present in ``taken``."""
    taken = set(taken)
    while True:
        candidate = "".join(random.choices(_ID_ALPHABET, k=ID_LENGTH))
        if candidate not in taken:
            return candidate


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


# Fields that may arrive as a list of strings and are joined into one string.
_LIST_SEPARATORS = {
    "skills": ", ",
    "interests": ", ",
    "description": "\n",
}


def _as_text(value: Any, name: str) -> str:
    """
    Coerces a decoded JSON value to the string stored in ``name``.

    Lists of plain values are joined for the fields in ``_LIST_SEPARATORS``;
    any other list or object is a shape error.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list) and name in _LIST_SEPARATORS:
        if any(isinstance(v, (dict, list)) for v in value):
            raise ParseError(f"Field '{to_camel(name)}' must be a list of strings")
        parts = (str(v).strip() for v in value if v is not None)
        return _LIST_SEPARATORS[name].join(p for p in parts if p)
    if isinstance(value, (dict, list)):
        raise ParseError(f"Field '{to_camel(name)}' must be a string, got {type(value).__name__}")
    return str(value)


@dataclass(frozen=True)
class Experience:
    """A single work history entry. Dates are free text ("Present" is fine)."""
    id: str
    job_title: str = ""
    company: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""


@dataclass(frozen=True)
class Education:
    id: str
    school: str = ""
    degree: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""


@dataclass(frozen=True)
class Award:
    id: str
    title: str = ""
    issuer: str = ""
    date: str = ""
    description: str = ""


@dataclass(frozen=True)
class Membership:
    id: str
    role: str = ""
    organization: str = ""
    date: str = ""


# Section name -> entity type, in display order.
SECTIONS = {
    "experience": Experience,
    "education": Education,
    "awards": Award,
    "memberships": Membership,
}


@dataclass(frozen=True)
class CVData:
    """
    The root record for one editing session.

    ``skills`` and ``interests`` are single comma-separated strings and stay
    that way end-to-end. The target_* fields are only prompt context for
    polishing; ``theme_color`` tints the rendered templates.
    """
    target_company: str = ""
    target_role: str = ""
    target_job_description: str = ""
    theme_color: str = DEFAULT_THEME_COLOR
    full_name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str = ""
    website: str = ""
    photo_url: str = ""
    headline: str = ""
    summary: str = ""
    skills: str = ""
    interests: str = ""
    experience: Tuple[Experience, ...] = field(default_factory=tuple)
    education: Tuple[Education, ...] = field(default_factory=tuple)
    awards: Tuple[Award, ...] = field(default_factory=tuple)
    memberships: Tuple[Membership, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in SECTIONS:
                value = [entity_to_dict(item) for item in value]
            data[to_camel(f.name)] = value
        return data

    @classmethod
    def from_dict(cls, raw: Any) -> "CVData":
        """
        Builds a CVData from a camelCase mapping.

        Missing keys take their defaults and ``null`` sections become empty.
        Entities without an id (or repeating one already seen in the same
        section) get a fresh id so removal by id stays unambiguous.
        """
        if not isinstance(raw, dict):
            raise ParseError(f"Expected a JSON object, got {type(raw).__name__}")

        values = {}
        for f in fields(cls):
            key = to_camel(f.name)
            if key not in raw:
                continue
            value = raw[key]
            if f.name in SECTIONS:
                values[f.name] = _section_from_list(f.name, value)
            else:
                values[f.name] = _as_text(value, f.name)
        return cls(**values)


INITIAL_CV_DATA = CVData()

SCALAR_FIELDS = tuple(f.name for f in fields(CVData) if f.name not in SECTIONS)


def entity_to_dict(entity) -> Dict[str, str]:
    return {to_camel(f.name): getattr(entity, f.name) for f in fields(entity)}


def entity_fields(section: str) -> Tuple[str, ...]:
    """Editable attribute names of a section's entity type (``id`` excluded)."""
    return tuple(f.name for f in fields(SECTIONS[section]) if f.name != "id")


def new_entity(section: str, taken: Iterable[str] = ()):
    """Creates an empty entity for ``section`` with a fresh unique id."""
    return SECTIONS[section](id=generate_id(taken))


def _section_from_list(section: str, value: Any) -> tuple:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ParseError(f"Section '{section}' must be a list, got {type(value).__name__}")

    entity_type = SECTIONS[section]
    names = {f.name for f in fields(entity_type)}
    items = []
    seen = set()
    for position, raw_item in enumerate(value):
        if not isinstance(raw_item, dict):
            raise ParseError(f"Item {position} of '{section}' must be an object")
        kwargs = {}
        for key, item_value in raw_item.items():
            name = to_snake(key)
            if name in names:
                kwargs[name] = _as_text(item_value, name)
        item_id = kwargs.get("id", "").strip()
        if not item_id or item_id in seen:
            item_id = generate_id(seen)
        kwargs["id"] = item_id
        seen.add(item_id)
        items.append(entity_type(**kwargs))
    return tuple(items)
