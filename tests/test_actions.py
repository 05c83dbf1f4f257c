import json
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from tempfile import TemporaryDirectory

from stpo.actions import (
    _clean,
    _make_csv,
    _make_pos,
    _make_pot,
    _stats,
    _translate,
    _update_pos,
    clean_document,
    select_languages,
)
from stpo.errors import OutputExistsError, StpoError
from stpo.headers import format_timestamp
from stpo.model import Document
from stpo.stpo import pofile, save_document


NOW = datetime(2024, 1, 2, 3, 4, tzinfo=timezone.utc)
LATER = NOW + timedelta(days=1)

CSV_CONTENT = 'Language,original,russian\nui.ok,OK,ОК\nui.cancel,Cancel,\n'


class UpperTranslator:
    def translate(self, request):
        return [text.upper() for text in request.texts]


class ActionTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.csv_path = self.root / "stringtable.csv"
        self.csv_path.write_text(CSV_CONTENT, encoding="utf-8")
        self.podir = self.root / "l18n"

    def tearDown(self):
        self._tmp.cleanup()

    def write_csv(self, text):
        self.csv_path.write_text(text, encoding="utf-8")

    def make_russian(self):
        list(_make_pos(str(self.csv_path), str(self.podir), ["russian"], now=NOW))
        return self.podir / "russian.po"


class TestMakePot(ActionTestCase):
    def test_creates_template(self):
        output = self.root / "stringtable.pot"

        lines = list(_make_pot(str(self.csv_path), str(output), project_version="Mod 1.0", now=NOW))

        pot = pofile(output)
        self.assertEqual([f"pot: {output} (2 entries)"], lines)
        self.assertTrue(pot.is_template)
        self.assertEqual([("ui.ok", "OK", ""), ("ui.cancel", "Cancel", "")],
                         [(e.context, e.source, e.target) for e in pot])
        self.assertEqual("Mod 1.0", pot.headers["Project-Id-Version"])
        self.assertEqual(format_timestamp(NOW), pot.headers["POT-Creation-Date"])
        self.assertIn("X-CSV-Hash", pot.headers)

    def test_regenerating_unchanged_source_is_byte_identical(self):
        output = self.root / "stringtable.pot"
        list(_make_pot(str(self.csv_path), str(output), now=NOW))
        first = output.read_text(encoding="utf-8")

        list(_make_pot(str(self.csv_path), str(output), force=True, now=LATER))

        self.assertEqual(first, output.read_text(encoding="utf-8"))

    def test_changed_source_refreshes_creation_date(self):
        output = self.root / "stringtable.pot"
        list(_make_pot(str(self.csv_path), str(output), now=NOW))
        self.write_csv(CSV_CONTENT + "ui.help,Help,\n")

        list(_make_pot(str(self.csv_path), str(output), force=True, now=LATER))

        pot = pofile(output)
        self.assertEqual(format_timestamp(LATER), pot.headers["POT-Creation-Date"])
        self.assertEqual(3, len(pot))

    def test_keeps_template_comments(self):
        output = self.root / "stringtable.pot"
        list(_make_pot(str(self.csv_path), str(output), now=NOW))
        pot = pofile(output)
        pot.get_entry("ui.ok", "OK").add_comment("#. Button label")
        save_document(pot, output)

        list(_make_pot(str(self.csv_path), str(output), force=True, now=LATER))

        self.assertEqual(["#. Button label"], pofile(output).get_entry("ui.ok", "OK").comments)

    def test_refuses_to_overwrite_without_force(self):
        output = self.root / "stringtable.pot"
        output.write_text("", encoding="utf-8")

        with self.assertRaises(OutputExistsError):
            list(_make_pot(str(self.csv_path), str(output), now=NOW))


class TestMakePos(ActionTestCase):
    def test_targets_come_from_language_column(self):
        lines = list(_make_pos(str(self.csv_path), str(self.podir), ["russian", "german"], now=NOW))

        self.assertEqual(2, len(lines))
        russian = pofile(self.podir / "russian.po")
        german = pofile(self.podir / "german.po")
        self.assertEqual("russian", russian.language)
        self.assertEqual("ОК", russian.lookup("ui.ok", "OK"))
        self.assertEqual("", russian.lookup("ui.cancel", "Cancel"))
        self.assertEqual("", german.lookup("ui.ok", "OK"))
        self.assertEqual(format_timestamp(NOW), russian.headers["PO-Revision-Date"])


class TestUpdatePos(ActionTestCase):
    def test_merges_new_rows_and_keeps_translator_work(self):
        path = self.make_russian()
        po = pofile(path)
        cancel = po.get_entry("ui.cancel", "Cancel")
        cancel.target = "Отмена"
        cancel.add_comment("# reviewed")
        save_document(po, path)
        self.write_csv('Language,original\nui.ok,Okay\nui.cancel,Cancel\nui.help,Help\n')

        lines = list(_update_pos(str(self.csv_path), str(self.podir), [], now=LATER))

        self.assertEqual([f"updated: {path} (3 entries)"], lines)
        po = pofile(path)
        self.assertEqual(["ui.ok", "ui.cancel", "ui.help"], [e.context for e in po])
        self.assertEqual("", po.lookup("ui.ok", "Okay"))
        self.assertEqual("Отмена", po.lookup("ui.cancel", "Cancel"))
        self.assertEqual(["# reviewed"], po.get_entry("ui.cancel", "Cancel").comments)
        self.assertEqual(format_timestamp(LATER), po.headers["PO-Revision-Date"])

    def test_second_update_is_unchanged(self):
        path = self.make_russian()
        list(_update_pos(str(self.csv_path), str(self.podir), [], now=NOW))
        before = path.read_text(encoding="utf-8")

        lines = list(_update_pos(str(self.csv_path), str(self.podir), ["russian"], now=LATER))

        self.assertEqual([f"unchanged: {path} (2 entries)"], lines)
        self.assertEqual(before, path.read_text(encoding="utf-8"))

    def test_new_language_file_is_created(self):
        lines = list(_update_pos(str(self.csv_path), str(self.podir), ["polish"], now=NOW))

        polish = pofile(self.podir / "polish.po")
        self.assertTrue(lines[0].startswith("updated:"))
        self.assertEqual("polish", polish.language)
        self.assertEqual(2, len(polish))


class TestMakeCsv(ActionTestCase):
    def test_merges_translations(self):
        self.make_russian()
        output = self.root / "merged.csv"

        list(_make_csv(str(self.csv_path), str(self.podir), str(output)))

        self.assertEqual(
            '"Language","original","russian",\n"ui.ok","OK","ОК",\n"ui.cancel","Cancel","",\n',
            output.read_text(encoding="utf-8"),
        )


class TestStats(ActionTestCase):
    def test_text_table(self):
        self.make_russian()

        lines = list(_stats(str(self.csv_path), str(self.podir)))

        self.assertEqual(["Language", "Translated", "Total", "Percentage", "Remaining"], lines[0].split())
        self.assertEqual(["russian", "1", "2", "50.0%", "1"], lines[1].split())

    def test_json(self):
        self.make_russian()

        data = json.loads("\n".join(_stats(str(self.csv_path), str(self.podir), output_format="json")))

        self.assertEqual(
            {"translated": 1, "total": 2, "percentage": 50.0, "remaining": 1},
            data["languages"]["russian"],
        )

    def test_verbose_lists_untranslated_with_line(self):
        path = self.make_russian()
        linenum = pofile(path).get_entry("ui.cancel", "Cancel").linenum

        lines = list(_stats(str(self.csv_path), str(self.podir), verbose=True))

        self.assertEqual([f'russian.po:{linenum}:ui.cancel:"Cancel"'], lines)

    def test_notranslate_counts_unless_clear_only(self):
        path = self.make_russian()
        po = pofile(path)
        po.get_entry("ui.cancel", "Cancel").add_comment("# notranslate")
        save_document(po, path)

        done = list(_stats(str(self.csv_path), str(self.podir)))
        strict = list(_stats(str(self.csv_path), str(self.podir), clear_only=True))

        self.assertEqual("2", done[1].split()[1])
        self.assertEqual("1", strict[1].split()[1])

    def test_unknown_language(self):
        self.make_russian()

        with self.assertRaisesRegex(StpoError, "klingon"):
            list(_stats(str(self.csv_path), str(self.podir), ["klingon"]))


class TestClean(ActionTestCase):
    def _write_catalog(self):
        po = Document(language="russian")
        po.upsert("ui.ok", "OK", "OK")
        po.upsert("ui.cancel", "Cancel", "Отмена")
        po.upsert("ui.old", "Old", "Старый")
        path = self.podir / "russian.po"
        save_document(po, path)
        return path

    def test_clears_copied_targets_and_marks_notranslate(self):
        path = self._write_catalog()

        lines = list(_clean(str(self.podir), now=NOW))

        self.assertEqual(["lang russian: 1 cleaned"], lines)
        entry = pofile(path).get_entry("ui.ok", "OK")
        self.assertEqual("", entry.target)
        self.assertEqual(["# notranslate"], entry.comments)
        self.assertTrue(entry.excluded)

    def test_clear_only_adds_no_comment(self):
        document = Document()
        document.upsert("ui.ok", "OK", "OK")

        self.assertEqual((1, 0), clean_document(document, clear_only=True))
        self.assertEqual([], document[0].comments)

    def test_remove_unused(self):
        path = self._write_catalog()

        lines = list(_clean(str(self.podir), input_path=str(self.csv_path), remove_unused=True, now=NOW))

        self.assertEqual(["lang russian: 1 cleaned, 1 removed"], lines)
        self.assertIsNone(pofile(path).get_entry("ui.old", "Old"))

    def test_remove_unused_requires_input(self):
        self._write_catalog()

        with self.assertRaises(StpoError):
            list(_clean(str(self.podir), remove_unused=True))


class TestTranslate(ActionTestCase):
    def test_dry_run_reports_counts(self):
        self.make_russian()

        lines = list(_translate(str(self.podir), UpperTranslator(), str.upper, dry_run=True))

        self.assertEqual(["lang russian -> RUSSIAN: strings 1, chars 6"], lines)

    def test_translates_and_saves(self):
        path = self.make_russian()

        lines = list(_translate(str(self.podir), UpperTranslator(), str.upper, now=LATER))

        self.assertEqual(["lang russian: translated 1"], lines)
        po = pofile(path)
        self.assertEqual("CANCEL", po.lookup("ui.cancel", "Cancel"))
        self.assertEqual(format_timestamp(LATER), po.headers["PO-Revision-Date"])

    def test_nothing_to_translate(self):
        path = self.make_russian()
        po = pofile(path)
        po.get_entry("ui.cancel", "Cancel").target = "Отмена"
        save_document(po, path)

        lines = list(_translate(str(self.podir), UpperTranslator(), str.upper))

        self.assertEqual(["lang russian: translated 0", "no untranslated entries found"], lines)

    def test_excluded_languages_leave_nothing(self):
        self.make_russian()

        with self.assertRaises(StpoError):
            list(_translate(str(self.podir), UpperTranslator(), str.upper, exclude=["russian"]))


class TestSelectLanguages(unittest.TestCase):
    def test_default_order_then_rest(self):
        self.assertEqual(["german", "russian", "klingon"], select_languages(["klingon", "russian", "german"]))

    def test_include_and_exclude(self):
        self.assertEqual(["russian"], select_languages(["german", "russian"], ["russian", "german"], ["german"]))

    def test_missing_language(self):
        with self.assertRaisesRegex(StpoError, "language 'polish' not found"):
            select_languages(["german"], ["polish"])


if __name__ == "__main__":
    unittest.main()
