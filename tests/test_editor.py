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

import unittest

from cv_forge import editor
from cv_forge.models import CVData, Experience, INITIAL_CV_DATA, SECTIONS


def _cv_with_experience(*ids):
    return CVData(
        full_name="Jane",
        experience=tuple(Experience(id=i, job_title=f"Job {i}") for i in ids),
    )


class TestUpdateField(unittest.TestCase):
    def test_changes_only_target_field(self):
        cv = _cv_with_experience("a", "b")
        updated = editor.update_field(cv, "summary", "New summary")
        self.assertEqual(updated.summary, "New summary")
        self.assertEqual(updated.full_name, cv.full_name)
        self.assertEqual(updated.experience, cv.experience)
        # Original value untouched
        self.assertEqual(cv.summary, "")

    def test_accepts_snake_case(self):
        updated = editor.update_field(INITIAL_CV_DATA, "full_name", "Jane")
        self.assertEqual(updated.full_name, "Jane")

    def test_no_value_validation(self):
        updated = editor.update_field(INITIAL_CV_DATA, "email", "not-an-email")
        self.assertEqual(updated.email, "not-an-email")
        updated = editor.update_field(updated, "themeColor", "papayawhip")
        self.assertEqual(updated.theme_color, "papayawhip")

    def test_rejects_unknown_and_section_names(self):
        with self.assertRaises(ValueError):
            editor.update_field(INITIAL_CV_DATA, "nickname", "x")
        with self.assertRaises(ValueError):
            editor.update_field(INITIAL_CV_DATA, "experience", "x")


class TestItems(unittest.TestCase):
    def test_add_item_appends_empty_entity(self):
        for section in SECTIONS:
            cv, new_id = editor.add_item(INITIAL_CV_DATA, section)
            items = getattr(cv, section)
            self.assertEqual(len(items), 1)
            self.assertEqual(items[0].id, new_id)
            self.assertTrue(new_id)

    def test_add_item_ids_unique(self):
        cv = INITIAL_CV_DATA
        for _ in range(20):
            cv, _ = editor.add_item(cv, "education")
        ids = [e.id for e in cv.education]
        self.assertEqual(len(set(ids)), 20)

    def test_add_item_preserves_order(self):
        cv, new_id = editor.add_item(_cv_with_experience("a", "b"), "experience")
        self.assertEqual([e.id for e in cv.experience], ["a", "b", new_id])

    def test_remove_item_preserves_order(self):
        cv = editor.remove_item(_cv_with_experience("a", "b", "c"), "experience", "b")
        self.assertEqual([e.id for e in cv.experience], ["a", "c"])

    def test_remove_unknown_id_is_noop(self):
        cv = _cv_with_experience("a")
        self.assertEqual(editor.remove_item(cv, "experience", "zzz"), cv)

    def test_update_item_changes_one_field(self):
        cv = _cv_with_experience("a", "b")
        updated = editor.update_item(cv, "experience", "b", "company", "Acme")
        self.assertEqual(updated.experience[1].company, "Acme")
        self.assertEqual(updated.experience[1].job_title, "Job b")
        self.assertEqual(updated.experience[0], cv.experience[0])
        self.assertEqual([e.id for e in updated.experience], ["a", "b"])

    def test_update_item_camel_case_field(self):
        cv = editor.update_item(_cv_with_experience("a"), "experience", "a", "endDate", "Present")
        self.assertEqual(cv.experience[0].end_date, "Present")

    def test_update_item_rejects_id_and_unknown_fields(self):
        cv = _cv_with_experience("a")
        with self.assertRaises(ValueError):
            editor.update_item(cv, "experience", "a", "id", "b")
        with self.assertRaises(ValueError):
            editor.update_item(cv, "experience", "a", "salary", "1")

    def test_unknown_section(self):
        with self.assertRaises(ValueError):
            editor.add_item(INITIAL_CV_DATA, "projects")


class TestPhoto(unittest.TestCase):
    def test_set_and_remove(self):
        cv = editor.set_photo(INITIAL_CV_DATA, "data:image/png;base64,AAAA")
        self.assertEqual(cv.photo_url, "data:image/png;base64,AAAA")
        self.assertEqual(editor.remove_photo(cv).photo_url, "")


class TestApplyEdit(unittest.TestCase):
    def test_scalar_edit_matches_update_field(self):
        cv = _cv_with_experience("a")
        self.assertEqual(
            editor.apply_edit(cv, editor.Edit("fullName", "Janet")),
            editor.update_field(cv, "fullName", "Janet"),
        )

    def test_item_edit_matches_update_item(self):
        cv = _cv_with_experience("a")
        change = editor.Edit("description", "• Led", section="experience", item_id="a")
        self.assertEqual(
            editor.apply_edit(cv, change),
            editor.update_item(cv, "experience", "a", "description", "• Led"),
        )

    def test_item_edit_requires_id(self):
        with self.assertRaises(ValueError):
            editor.apply_edit(INITIAL_CV_DATA, editor.Edit("school", "MIT", section="education"))


if __name__ == '__main__':
    unittest.main()
