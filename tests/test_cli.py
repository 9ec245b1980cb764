from __future__ import annotations

import contextlib
import io
import json
import os
import tempfile
import unittest

from htmlinject import __version__
from htmlinject.cli import COMMAND_LINE_ERROR_EXIT_CODE, GENERIC_ERROR_EXIT_CODE, load_data, main

DOCUMENT = '<ul id="menu"><li>one</li></ul>\n'


class TestCommandLine(unittest.TestCase):
    def setUp(self) -> None:
        self.directory = tempfile.TemporaryDirectory()
        self.template_path = self.write("page.html", DOCUMENT)

    def tearDown(self) -> None:
        self.directory.cleanup()

    def write(self, name, content):
        path = os.path.join(self.directory.name, name)
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(content)
        return path

    def run_main(self, *argv):
        stdout, stderr = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            code = main(list(argv))
        return code, stdout.getvalue(), stderr.getvalue()

    def test_render_to_stdout(self) -> None:
        data_path = self.write("data.json", json.dumps({"li": {"clone": 1, "replace": None}, "ul": {"attr:id": None}}))
        code, out, err = self.run_main(self.template_path, data_path)
        assert code == 0
        assert out == "<ul></ul>\n"
        assert err == ""

    def test_render_without_data_copies_template(self) -> None:
        code, out, _ = self.run_main(self.template_path)
        assert code == 0
        assert out == DOCUMENT

    def test_output_file(self) -> None:
        data_path = self.write("data.json", '{"li": ["two"]}')
        output_path = os.path.join(self.directory.name, "out.html")
        code, out, _ = self.run_main(self.template_path, data_path, "-o", output_path)
        assert code == 0
        assert out == ""
        with open(output_path, encoding="utf-8") as handle:
            assert handle.read() == '<ul id="menu"><li>two</li></ul>\n'

    def test_invalid_json(self) -> None:
        data_path = self.write("data.json", "{not json")
        code, out, err = self.run_main(self.template_path, data_path)
        assert code == COMMAND_LINE_ERROR_EXIT_CODE
        assert out == ""
        assert "invalid JSON" in err

    def test_data_must_be_an_object(self) -> None:
        data_path = self.write("data.json", '["li"]')
        code, _, err = self.run_main(self.template_path, data_path)
        assert code == COMMAND_LINE_ERROR_EXIT_CODE
        assert "JSON object" in err

    def test_invalid_selector(self) -> None:
        data_path = self.write("data.json", '{"li:hover": "x"}')
        code, out, err = self.run_main(self.template_path, data_path)
        assert code == COMMAND_LINE_ERROR_EXIT_CODE
        assert out == ""
        assert "li:hover" in err

    def test_missing_data_file(self) -> None:
        code, _, err = self.run_main(self.template_path, os.path.join(self.directory.name, "nope.json"))
        assert code == GENERIC_ERROR_EXIT_CODE
        assert "cannot read" in err

    def test_data_not_in_encoding(self) -> None:
        data_path = os.path.join(self.directory.name, "data.json")
        with open(data_path, "wb") as handle:
            handle.write(b'{"li": "\xe9"}')
        code, out, err = self.run_main(self.template_path, data_path)
        assert code == GENERIC_ERROR_EXIT_CODE
        assert out == ""
        assert "cannot read" in err

    def test_latin1_data_with_matching_encoding(self) -> None:
        data_path = os.path.join(self.directory.name, "data.json")
        with open(data_path, "wb") as handle:
            handle.write(b'{"li": "\xe9"}')
        code, out, _ = self.run_main(self.template_path, data_path, "--encoding", "latin-1")
        assert code == 0
        assert out == '<ul id="menu"><li>\u00e9</li></ul>\n'

    def test_unknown_encoding(self) -> None:
        code, out, err = self.run_main(self.template_path, "--encoding", "no-such-codec")
        assert code == COMMAND_LINE_ERROR_EXIT_CODE
        assert out == ""
        assert "unknown encoding" in err

    def test_missing_template(self) -> None:
        code, _, err = self.run_main(os.path.join(self.directory.name, "nope.html"))
        assert code == COMMAND_LINE_ERROR_EXIT_CODE
        assert "not found" in err

    def test_unwritable_output(self) -> None:
        output_path = os.path.join(self.directory.name, "missing-dir", "out.html")
        code, _, err = self.run_main(self.template_path, "-o", output_path)
        assert code == GENERIC_ERROR_EXIT_CODE
        assert "cannot write" in err

    def test_version(self) -> None:
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout), self.assertRaises(SystemExit) as context:
            main(["--version"])
        assert context.exception.code == 0
        assert __version__ in stdout.getvalue()

    def test_load_data_without_argument(self) -> None:
        assert load_data(None, "utf-8") == {}


if __name__ == "__main__":
    unittest.main()
