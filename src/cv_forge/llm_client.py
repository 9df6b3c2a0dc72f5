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
Client for the LLM providers used to polish a CV.
Supports Google AI Studio (Gemini, structured JSON output) and NVIDIA's
OpenAI-compatible endpoint, called directly or through the CV Forge relay.

Every call is attempted exactly once: SDK retries are disabled.
"""

import logging

from cv_forge.config import Settings, PROVIDERS, configure_ssl_env
from cv_forge.errors import ConfigurationError, ProviderError
from cv_forge.models import CVData
from cv_forge.polish import SYSTEM_INSTRUCTION, build_messages, build_prompt, polish_cv

# Logger is configured in main.py
logger = logging.getLogger(__name__)

RELAY_PATH = "/api/nvidia/v1"
# The relay swaps in the server-held key; the SDK still insists on a value.
RELAY_PLACEHOLDER_KEY = "relay-managed"


def _string(description: str = None) -> dict:
    schema = {"type": "STRING"}
    if description:
        schema["description"] = description
    return schema


def _list_of(properties: dict, required: list) -> dict:
    return {
        "type": "ARRAY",
        "items": {"type": "OBJECT", "properties": properties, "required": required},
    }


# Response schema for Gemini structured output, mirroring CVData minus the
# photo and the session-only fields.
CV_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "fullName": _string(),
        "email": _string(),
        "phone": _string(),
        "location": _string(),
        "linkedin": _string(),
        "website": _string(),
        "headline": _string("Job title or professional headline"),
        "summary": _string(),
        "skills": _string("Comma separated list of skills"),
        "interests": _string("Comma separated list of interests/hobbies"),
        "experience": _list_of({
            "id": _string(),
            "jobTitle": _string(),
            "company": _string(),
            "startDate": _string(),
            "endDate": _string(),
            "description": _string("Polished, achievement-oriented description."),
        }, ["jobTitle", "company", "description"]),
        "education": _list_of({
            "id": _string(),
            "school": _string(),
            "degree": _string(),
            "startDate": _string(),
            "endDate": _string(),
            "description": _string(),
        }, ["school", "degree"]),
        "awards": _list_of({
            "id": _string(),
            "title": _string(),
            "issuer": _string(),
            "date": _string(),
            "description": _string(),
        }, ["title", "issuer"]),
        "memberships": _list_of({
            "id": _string(),
            "role": _string(),
            "organization": _string(),
            "date": _string(),
        }, ["role", "organization"]),
    },
    "required": ["fullName", "summary", "experience", "education", "skills"],
}


class LLMClient:
    """
    Sends a CV to the configured provider and returns the raw reply text.
    """
    def __init__(self, provider: str = None, settings: Settings = None):
        self.settings = settings or Settings.from_env()
        self.provider = (provider or self.settings.provider).lower()
        if self.provider not in PROVIDERS:
            raise ConfigurationError(
                f"Unsupported provider '{self.provider}'. Expected one of {', '.join(PROVIDERS)}"
            )

    def complete(self, cv: CVData) -> str:
        """Returns the provider's raw text reply for a polish request."""
        # Custom CA bundles must be visible to the httpx-based SDKs
        configure_ssl_env()
        if self.provider == "nvidia":
            return self._call_nvidia(cv)
        return self._call_gemini(cv)

    def polish(self, cv: CVData) -> CVData:
        return polish_cv(cv, self)

    def _call_gemini(self, cv: CVData) -> str:
        api_key = self.settings.gemini_api_key
        if not api_key:
            raise ConfigurationError("Gemini API key is missing. Set GEMINI_API_KEY.")

        from google import genai
        from google.genai import types

        client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(self.settings.timeout * 1000)),
        )
        logger.info(f"Sending polish request to Gemini ({self.settings.gemini_model})")
        try:
            response = client.models.generate_content(
                model=self.settings.gemini_model,
                contents=build_prompt(cv),
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=CV_RESPONSE_SCHEMA,
                    system_instruction=SYSTEM_INSTRUCTION,
                ),
            )
        except Exception as e:
            raise ProviderError(f"Gemini request failed: {e}") from e

        text = response.text
        if not text:
            raise ProviderError("No response from AI")
        logger.debug(f"Gemini reply length: {len(text)}")
        return text

    def _nvidia_endpoint(self):
        """Returns (base_url, api_key) for the OpenAI-compatible SDK."""
        if self.settings.relay_url:
            return f"{self.settings.relay_url}{RELAY_PATH}", RELAY_PLACEHOLDER_KEY

        api_key = self.settings.nvidia_api_key
        if not api_key:
            raise ConfigurationError(
                "NVIDIA API key is missing. Set NVIDIA_API_KEY or point CV_FORGE_RELAY_URL at a relay."
            )
        return self.settings.nvidia_base_url, api_key

    def _call_nvidia(self, cv: CVData) -> str:
        base_url, api_key = self._nvidia_endpoint()

        import openai

        client = openai.OpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=self.settings.timeout,
            max_retries=0,
        )
        system_prompt, user_prompt = build_messages(cv)
        logger.info(f"Sending polish request to {base_url} ({self.settings.nvidia_model})")
        try:
            response = client.chat.completions.create(
                model=self.settings.nvidia_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=1,
                top_p=1,
                max_tokens=16384,
                stream=False,
            )
        except openai.APIStatusError as e:
            raise ProviderError(f"NVIDIA API error: {e.status_code} - {e.message}", status_code=e.status_code) from e
        except openai.OpenAIError as e:
            raise ProviderError(f"NVIDIA request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ProviderError("No response content from NVIDIA AI")
        logger.debug(f"NVIDIA reply length: {len(content)}")
        return content
