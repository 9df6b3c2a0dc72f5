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

import base64
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch, MagicMock

import requests
from docx import Document

from cv_forge import ingest
from cv_forge.errors import PhotoError


class TestReadPhoto(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def _write(self, name, content):
        path = os.path.join(self.test_dir, name)
        with open(path, "wb") as f:
            f.write(content)
        return path

    def test_encodes_data_url(self):
        path = self._write("me.png", b"\x89PNG fake")
        data_url = ingest.read_photo(path)
        self.assertTrue(data_url.startswith("data:image/png;base64,"))
        self.assertEqual(ingest.decode_data_url(data_url), b"\x89PNG fake")

    def test_rejects_non_images(self):
        path = self._write("notes.txt", b"hello")
        with self.assertRaises(PhotoError):
            ingest.read_photo(path)

    def test_rejects_large_files(self):
        path = self._write("big.jpg", b"x" * 2048)
        with self.assertRaises(PhotoError):
            ingest.read_photo(path, max_bytes=1024)

    def test_missing_file(self):
        with self.assertRaises(PhotoError):
            ingest.read_photo(os.path.join(self.test_dir, "gone.png"))


class TestDecodeDataUrl(unittest.TestCase):
    def test_not_a_data_url(self):
        self.assertIsNone(ingest.decode_data_url(""))
        self.assertIsNone(ingest.decode_data_url("https://example.com/me.png"))
        self.assertIsNone(ingest.decode_data_url("data:image/png,rawbytes"))

    def test_invalid_base64(self):
        self.assertIsNone(ingest.decode_data_url("data:image/png;base64,@@@"))

    def test_valid(self):
        encoded = base64.b64encode(b"abc").decode("ascii")
        self.assertEqual(ingest.decode_data_url(f"data:image/png;base64,{encoded}"), b"abc")


class TestReadJobDescription(unittest.TestCase):
    def setUp(self):
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_text_file(self):
        path = os.path.join(self.test_dir, "jd.txt")
        with open(path, "w", encoding="utf-8") as f:
            f.write("Senior Python Engineer")
        self.assertEqual(ingest.read_job_description(path), "Senior Python Engineer")

    def test_docx_file(self):
        path = os.path.join(self.test_dir, "jd.docx")
        doc = Document()
        doc.add_paragraph("Staff Engineer")
        doc.add_paragraph("Kubernetes required")
        doc.save(path)
        self.assertEqual(ingest.read_job_description(path), "Staff Engineer\nKubernetes required")

    def test_missing_files_return_empty(self):
        self.assertEqual(ingest.read_job_description(os.path.join(self.test_dir, "nope.txt")), "")
        self.assertEqual(ingest.read_docx(os.path.join(self.test_dir, "nonexistent.docx")), "")
        self.assertEqual(ingest.read_pdf(os.path.join(self.test_dir, "nonexistent.pdf")), "")

    @patch('cv_forge.ingest.requests.get')
    def test_read_url(self, mock_get):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.content = b"<html><head><style>p{}</style></head><body><p>Hello World.</p><script>x()</script></body></html>"
        mock_get.return_value = mock_response

        text = ingest.read_job_description("https://example.com/job")
        self.assertEqual(text, "Hello World.")

    @patch('cv_forge.ingest.requests.get')
    def test_read_url_failure(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("offline")
        self.assertEqual(ingest.read_url("https://example.com/job"), "")


if __name__ == '__main__':
    unittest.main()
