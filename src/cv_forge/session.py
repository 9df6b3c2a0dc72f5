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
Editor session: the single shared CVData value behind both editing surfaces.
"""

import logging

from cv_forge import editor
from cv_forge.errors import CVForgeError, ParseError, PolishInProgressError, ValidationError
from cv_forge.generator import TEMPLATES, DEFAULT_TEMPLATE
from cv_forge.models import CVData, INITIAL_CV_DATA
from cv_forge.polish import FAILURE_MESSAGE, check_ready

logger = logging.getLogger(__name__)

SURFACES = ("form", "preview")


class EditorSession:
    """
    Holds the current CV value, the selected template and the last error.

    The form and the preview both call ``edit``; each change swaps ``cv`` for
    a new value. Only one polish may be outstanding at a time.
    """
    def __init__(self, cv: CVData = INITIAL_CV_DATA, template: str = DEFAULT_TEMPLATE):
        self.cv = cv
        self.template = DEFAULT_TEMPLATE
        self.set_template(template)
        self.error = None
        self.is_generating = False

    def edit(self, change: editor.Edit, surface: str = "form") -> CVData:
        if surface not in SURFACES:
            raise ValueError(f"Unknown editing surface: '{surface}'")
        logger.debug(f"{surface} edit: {change.section or 'cv'}.{change.field}")
        self.cv = editor.apply_edit(self.cv, change)
        return self.cv

    def add_item(self, section: str) -> str:
        self.cv, item_id = editor.add_item(self.cv, section)
        return item_id

    def remove_item(self, section: str, item_id: str) -> CVData:
        self.cv = editor.remove_item(self.cv, section, item_id)
        return self.cv

    def set_photo(self, data_url: str) -> CVData:
        self.cv = editor.set_photo(self.cv, data_url)
        return self.cv

    def remove_photo(self) -> CVData:
        self.cv = editor.remove_photo(self.cv)
        return self.cv

    def set_template(self, template: str) -> None:
        if template not in TEMPLATES:
            raise ValueError(f"Unknown template '{template}'. Expected one of {', '.join(TEMPLATES)}")
        self.template = template

    def polish(self, client) -> bool:
        """
        Polishes the current CV through ``client``.

        Returns True when the CV was replaced. On any failure the CV is left
        as it was and ``error`` holds a user-facing message.
        """
        if self.is_generating:
            raise PolishInProgressError("A polish request is already in progress")

        try:
            check_ready(self.cv)
        except ValidationError as e:
            self.error = str(e)
            logger.warning(f"Polish blocked: {e}")
            return False

        self.is_generating = True
        self.error = None
        before = self.cv
        try:
            polished = client.polish(before)
        except ParseError as e:
            logger.error(f"Could not parse polished CV: {e}")
            logger.error(f"Raw response: {e.raw}")
            self.error = FAILURE_MESSAGE
            return False
        except CVForgeError as e:
            logger.error(f"Polish failed: {e}")
            self.error = FAILURE_MESSAGE
            return False
        finally:
            self.is_generating = False

        self.cv = polished
        logger.info("CV polished")
        return True
