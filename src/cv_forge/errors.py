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
Exception hierarchy for CV Forge.
"""


class CVForgeError(Exception):
    """Base class for all application errors."""


class ValidationError(CVForgeError):
    """Pre-flight check failed; no network call was made."""


class ConfigurationError(CVForgeError):
    """A required setting (usually a provider API key) is missing."""


class ProviderError(CVForgeError):
    """The LLM provider (or the relay in front of it) failed or returned nothing."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(CVForgeError):
    """The provider reply could not be turned into CVData."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class PolishInProgressError(CVForgeError):
    """A polish request is already outstanding for this session."""


class PhotoError(CVForgeError):
    """The selected photo is not an image or is too large."""
