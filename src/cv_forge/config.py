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
Runtime configuration, read from the environment.

Provider keys are only ever read by the process that makes the outbound
call (the CLI, or the relay for NVIDIA); nothing here is meant to be shipped
to a client.

CA bundle resolution for proxy environments checks, in priority order:
  1. Explicit override via --ca-bundle CLI arg
  2. REQUESTS_CA_BUNDLE environment variable
  3. CURL_CA_BUNDLE environment variable
  4. SSL_CERT_FILE environment variable
  5. System defaults (True, i.e. certifi / OS trust store)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

PROVIDERS = ("gemini", "nvidia")

GEMINI_MODEL = "gemini-3-flash-preview"
NVIDIA_MODEL = "z-ai/glm4.7"
NVIDIA_BASE_URL = "https://integrate.api.nvidia.com/v1"
NVIDIA_CHAT_URL = f"{NVIDIA_BASE_URL}/chat/completions"

DEFAULT_TIMEOUT = 120.0
DEFAULT_MAX_PHOTO_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    provider: str = "gemini"
    gemini_api_key: str | None = None
    nvidia_api_key: str | None = None
    gemini_model: str = GEMINI_MODEL
    nvidia_model: str = NVIDIA_MODEL
    nvidia_base_url: str = NVIDIA_BASE_URL
    relay_url: str | None = None
    upstream_url: str = NVIDIA_CHAT_URL
    timeout: float = DEFAULT_TIMEOUT
    max_photo_bytes: int = DEFAULT_MAX_PHOTO_BYTES
    home: Path = Path("user_content")

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ

        provider = env.get("CV_FORGE_PROVIDER", "gemini").strip().lower()
        if provider not in PROVIDERS:
            logger.warning(f"Unknown provider '{provider}', using gemini")
            provider = "gemini"

        return cls(
            provider=provider,
            gemini_api_key=env.get("GEMINI_API_KEY") or env.get("API_KEY") or None,
            nvidia_api_key=env.get("NVIDIA_API_KEY") or None,
            gemini_model=env.get("CV_FORGE_GEMINI_MODEL", GEMINI_MODEL),
            nvidia_model=env.get("CV_FORGE_NVIDIA_MODEL", NVIDIA_MODEL),
            nvidia_base_url=env.get("CV_FORGE_NVIDIA_BASE_URL", NVIDIA_BASE_URL).rstrip("/"),
            relay_url=(env.get("CV_FORGE_RELAY_URL") or "").rstrip("/") or None,
            upstream_url=env.get("CV_FORGE_UPSTREAM_URL", NVIDIA_CHAT_URL),
            timeout=_number(env, "CV_FORGE_TIMEOUT", DEFAULT_TIMEOUT, float),
            max_photo_bytes=_number(env, "CV_FORGE_MAX_PHOTO_BYTES", DEFAULT_MAX_PHOTO_BYTES, int),
            home=Path(env.get("CV_FORGE_HOME", "user_content")),
        )


def _number(env, name, default, cast):
    raw = env.get(name)
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}; using {default}")
        return default


# Set by the CLI --ca-bundle flag
_ca_bundle_override: str | None = None


def set_ca_bundle_override(path: str | None) -> None:
    global _ca_bundle_override
    _ca_bundle_override = path
    if path:
        logger.info(f"CA bundle override set to: {path}")


def get_ca_bundle() -> str | bool:
    """
    Resolve the CA bundle for outbound HTTPS requests.

    Returns a path to a bundle file, or True for the default trust store.
    """
    if _ca_bundle_override:
        return _ca_bundle_override

    for var in ("REQUESTS_CA_BUNDLE", "CURL_CA_BUNDLE", "SSL_CERT_FILE"):
        value = os.environ.get(var)
        if value:
            logger.debug(f"Using CA bundle from {var}: {value}")
            return value

    return True


def configure_ssl_env() -> None:
    """
    Export a custom CA bundle as SSL_CERT_FILE for the httpx-based SDKs
    (google-genai, openai), which do not read REQUESTS_CA_BUNDLE.
    """
    bundle = get_ca_bundle()
    if isinstance(bundle, str) and os.environ.get("SSL_CERT_FILE") != bundle:
        os.environ["SSL_CERT_FILE"] = bundle
        logger.debug(f"Set SSL_CERT_FILE={bundle} for SDK clients")
