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
Editing operations over CVData.

Every operation takes the current value and returns a new one; nothing is
mutated in place. The form and the preview both express a change as an
``Edit`` and hand it to ``apply_edit`` so there is a single update path.
"""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from cv_forge.models import (
    CVData,
    SCALAR_FIELDS,
    SECTIONS,
    entity_fields,
    new_entity,
    to_snake,
)

logger = logging.getLogger(__name__)


def _scalar_name(name: str) -> str:
    attr = to_snake(name)
    if attr in SECTIONS:
        raise ValueError(f"'{name}' is a list section; use add_item/update_item/remove_item")
    if attr not in SCALAR_FIELDS:
        raise ValueError(f"Unknown CV field: '{name}'")
    return attr


def _section_name(section: str) -> str:
    if section not in SECTIONS:
        raise ValueError(f"Unknown section: '{section}'. Expected one of {', '.join(SECTIONS)}")
    return section


def _item_field(section: str, name: str) -> str:
    attr = to_snake(name)
    if attr == "id":
        raise ValueError("Item ids are assigned on creation and cannot be edited")
    if attr not in entity_fields(section):
        raise ValueError(f"Unknown field '{name}' for {section}")
    return attr


def update_field(cv: CVData, name: str, value: str) -> CVData:
    """Replaces a single scalar field. Values are stored as given."""
    return dataclasses.replace(cv, **{_scalar_name(name): value})


def add_item(cv: CVData, section: str) -> Tuple[CVData, str]:
    """Appends an empty entity to ``section``; returns the new value and the new id."""
    section = _section_name(section)
    items = getattr(cv, section)
    item = new_entity(section, taken=(i.id for i in items))
    logger.debug(f"Added {section} item {item.id}")
    return dataclasses.replace(cv, **{section: items + (item,)}), item.id


def remove_item(cv: CVData, section: str, item_id: str) -> CVData:
    section = _section_name(section)
    items = getattr(cv, section)
    return dataclasses.replace(cv, **{section: tuple(i for i in items if i.id != item_id)})


def update_item(cv: CVData, section: str, item_id: str, name: str, value: str) -> CVData:
    """Replaces one field of the entity with ``item_id``. Unknown ids are a no-op."""
    section = _section_name(section)
    attr = _item_field(section, name)
    items = tuple(
        dataclasses.replace(i, **{attr: value}) if i.id == item_id else i
        for i in getattr(cv, section)
    )
    return dataclasses.replace(cv, **{section: items})


def set_photo(cv: CVData, data_url: str) -> CVData:
    return dataclasses.replace(cv, photo_url=data_url)


def remove_photo(cv: CVData) -> CVData:
    return dataclasses.replace(cv, photo_url="")


@dataclass(frozen=True)
class Edit:
    """
    A single change requested by an editing surface.

    With ``section`` unset, ``field`` names a scalar CV field; otherwise it
    names a field of the ``item_id`` entity in that section.
    """
    field: str
    value: str
    section: Optional[str] = None
    item_id: Optional[str] = None


def apply_edit(cv: CVData, edit: Edit) -> CVData:
    if edit.section is None:
        return update_field(cv, edit.field, edit.value)
    if edit.item_id is None:
        raise ValueError("Section edits need an item_id")
    return update_item(cv, edit.section, edit.item_id, edit.field, edit.value)
