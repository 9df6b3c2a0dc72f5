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

import json
import os
import unittest
from unittest.mock import patch, MagicMock

import httpx
import openai

from cv_forge import llm_client
from cv_forge.config import Settings, GEMINI_MODEL, NVIDIA_BASE_URL, NVIDIA_MODEL
from cv_forge.errors import ConfigurationError, ProviderError
from cv_forge.models import CVData, Experience

CV = CVData(
    full_name="Jane Doe",
    photo_url="data:image/png;base64,SECRETPHOTO",
    experience=(Experience(id="x1", job_title="Engineer"),),
)


def _openai_response(content):
    # Explicit chain: response.choices[0].message.content
    mock_message = MagicMock()
    mock_message.content = content
    mock_choice = MagicMock()
    mock_choice.message = mock_message
    mock_response = MagicMock()
    mock_response.choices = [mock_choice]
    return mock_response


class TestLLMClient(unittest.TestCase):
    def setUp(self):
        # Keep custom CA bundles from leaking in from the developer's shell
        self.env_patch = patch.dict(os.environ, {}, clear=True)
        self.env_patch.start()

    def tearDown(self):
        self.env_patch.stop()

    def test_unknown_provider(self):
        with self.assertRaises(ConfigurationError):
            llm_client.LLMClient(provider="claude", settings=Settings())

    def test_provider_from_settings(self):
        client = llm_client.LLMClient(settings=Settings(provider="nvidia"))
        self.assertEqual(client.provider, "nvidia")

    @patch("google.genai.Client")
    def test_call_gemini(self, mock_client_class):
        mock_response = MagicMock()
        mock_response.text = '{"fullName": "Jane Doe"}'
        mock_client_class.return_value.models.generate_content.return_value = mock_response

        client = llm_client.LLMClient(provider="gemini", settings=Settings(gemini_api_key="mock_key"))
        result = client.complete(CV)

        self.assertEqual(result, '{"fullName": "Jane Doe"}')
        self.assertEqual(mock_client_class.call_args.kwargs["api_key"], "mock_key")
        kwargs = mock_client_class.return_value.models.generate_content.call_args.kwargs
        self.assertEqual(kwargs["model"], GEMINI_MODEL)
        self.assertEqual(kwargs["config"].response_mime_type, "application/json")
        self.assertNotIn("SECRETPHOTO", kwargs["contents"])

    @patch("google.genai.Client")
    def test_gemini_empty_reply(self, mock_client_class):
        mock_client_class.return_value.models.generate_content.return_value = MagicMock(text="")
        client = llm_client.LLMClient(provider="gemini", settings=Settings(gemini_api_key="k"))
        with self.assertRaises(ProviderError):
            client.complete(CV)

    @patch("google.genai.Client")
    def test_gemini_sdk_failure(self, mock_client_class):
        mock_client_class.return_value.models.generate_content.side_effect = RuntimeError("quota")
        client = llm_client.LLMClient(provider="gemini", settings=Settings(gemini_api_key="k"))
        with self.assertRaises(ProviderError):
            client.complete(CV)

    @patch("google.genai.Client")
    def test_gemini_missing_key(self, mock_client_class):
        client = llm_client.LLMClient(provider="gemini", settings=Settings())
        with self.assertRaises(ConfigurationError):
            client.complete(CV)
        mock_client_class.assert_not_called()

    @patch("openai.OpenAI")
    def test_call_nvidia_direct(self, mock_openai_class):
        create = mock_openai_class.return_value.chat.completions.create
        create.return_value = _openai_response("```json\n{}\n```")

        client = llm_client.LLMClient(provider="nvidia", settings=Settings(nvidia_api_key="nv-key"))
        result = client.complete(CV)

        self.assertEqual(result, "```json\n{}\n```")
        init = mock_openai_class.call_args.kwargs
        self.assertEqual(init["base_url"], NVIDIA_BASE_URL)
        self.assertEqual(init["api_key"], "nv-key")
        self.assertEqual(init["max_retries"], 0)
        kwargs = create.call_args.kwargs
        self.assertEqual(kwargs["model"], NVIDIA_MODEL)
        self.assertEqual(kwargs["messages"][0]["role"], "system")
        self.assertNotIn("SECRETPHOTO", json.dumps(kwargs["messages"]))
        self.assertFalse(kwargs["stream"])

    @patch("openai.OpenAI")
    def test_call_nvidia_through_relay(self, mock_openai_class):
        mock_openai_class.return_value.chat.completions.create.return_value = _openai_response("{}")

        settings = Settings(relay_url="http://localhost:8000")
        llm_client.LLMClient(provider="nvidia", settings=settings).complete(CV)

        init = mock_openai_class.call_args.kwargs
        self.assertEqual(init["base_url"], "http://localhost:8000/api/nvidia/v1")
        self.assertEqual(init["api_key"], llm_client.RELAY_PLACEHOLDER_KEY)

    @patch("openai.OpenAI")
    def test_nvidia_missing_key(self, mock_openai_class):
        client = llm_client.LLMClient(provider="nvidia", settings=Settings())
        with self.assertRaises(ConfigurationError):
            client.complete(CV)
        mock_openai_class.assert_not_called()

    @patch("openai.OpenAI")
    def test_nvidia_status_error(self, mock_openai_class):
        request = httpx.Request("POST", "https://integrate.api.nvidia.com/v1/chat/completions")
        error = openai.APIStatusError("Unauthorized", response=httpx.Response(401, request=request), body=None)
        create = mock_openai_class.return_value.chat.completions.create
        create.side_effect = error

        client = llm_client.LLMClient(provider="nvidia", settings=Settings(nvidia_api_key="bad"))
        with self.assertRaises(ProviderError) as ctx:
            client.complete(CV)
        self.assertEqual(ctx.exception.status_code, 401)
        # Exactly one attempt
        self.assertEqual(create.call_count, 1)

    @patch("openai.OpenAI")
    def test_nvidia_connection_error(self, mock_openai_class):
        request = httpx.Request("POST", "https://integrate.api.nvidia.com/v1/chat/completions")
        mock_openai_class.return_value.chat.completions.create.side_effect = openai.APIConnectionError(request=request)
        client = llm_client.LLMClient(provider="nvidia", settings=Settings(nvidia_api_key="k"))
        with self.assertRaises(ProviderError):
            client.complete(CV)

    @patch("openai.OpenAI")
    def test_nvidia_empty_content(self, mock_openai_class):
        mock_openai_class.return_value.chat.completions.create.return_value = _openai_response(None)
        client = llm_client.LLMClient(provider="nvidia", settings=Settings(nvidia_api_key="k"))
        with self.assertRaises(ProviderError):
            client.complete(CV)

    def test_polish_merges_reply(self):
        client = llm_client.LLMClient(provider="gemini", settings=Settings(gemini_api_key="k"))
        reply = '{"fullName": "Jane Doe", "photoUrl": "", "summary": "Polished"}'
        with patch.object(client, "complete", return_value=reply):
            result = client.polish(CV)
        self.assertEqual(result.summary, "Polished")
        self.assertEqual(result.photo_url, CV.photo_url)


if __name__ == '__main__':
    unittest.main()
