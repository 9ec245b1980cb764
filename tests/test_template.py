from __future__ import annotations

import asyncio
import os
import pathlib
import tempfile
import unittest

from htmlinject import Template, TemplateOpts
from htmlinject.template import concat

DOCUMENT = '<html><body><h1 class="t">Title</h1><ul><li>item</li></ul></body></html>'


class TemplateFileTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.directory = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.directory.name, "page.html")
        with open(self.path, "w", encoding="utf-8") as handle:
            handle.write(DOCUMENT)

    def tearDown(self) -> None:
        self.directory.cleanup()


class TestTemplateSources(TemplateFileTestCase):
    def test_file_path_string(self) -> None:
        template = Template(self.path)
        assert template.is_file
        assert template.render({"h1": "New"}) == DOCUMENT.replace("Title", "New")

    def test_path_like(self) -> None:
        template = Template(pathlib.Path(self.path))
        assert template.is_file
        assert template.path == self.path
        assert template.render({}) == DOCUMENT

    def test_literal_markup(self) -> None:
        template = Template("<p>x</p>")
        assert not template.is_file
        assert template.render({"p": "y"}) == "<p>y</p>"

    def test_string_that_is_not_a_file_is_markup(self) -> None:
        template = Template("just text")
        assert not template.is_file
        assert template.render({"p": "y"}) == "just text"

    def test_bytes_markup(self) -> None:
        template = Template("<p>é</p>".encode())
        assert template.render({"p": {"append": "!"}}) == "<p>é!</p>"

    def test_other_sources_are_rejected(self) -> None:
        with self.assertRaises(TypeError):
            Template(42)  # type: ignore[arg-type]

    def test_small_chunks_give_the_same_result(self) -> None:
        data = {"li": {"clone": 1}, ".t": {"attr:class": None}}
        expected = Template(self.path).render(data)
        template = Template(self.path, opts=TemplateOpts(chunk_size=3))
        assert template.render(data) == expected
        assert expected == (
            "<html><body><h1>Title</h1><ul><li>item</li><li>item</li></ul></body></html>"
        )

    def test_file_is_reread_on_every_render(self) -> None:
        template = Template(self.path)
        assert template.render({}) == DOCUMENT
        with open(self.path, "w", encoding="utf-8") as handle:
            handle.write("<p>changed</p>")
        assert template.render({}) == "<p>changed</p>"

    def test_bom_can_be_discarded(self) -> None:
        with open(self.path, "wb") as handle:
            handle.write("\ufeff<p>x</p>".encode())
        assert Template(self.path).render({}) == "\ufeff<p>x</p>"
        assert Template(self.path, opts=TemplateOpts(discard_bom=True)).render({}) == "<p>x</p>"

    def test_repr(self) -> None:
        assert repr(Template(self.path)) == f"Template(path={self.path!r})"
        assert repr(Template("<p></p>")) == "Template(<7 characters of markup>)"


class TestTemplateOutputs(TemplateFileTestCase):
    def test_stream_yields_chunks(self) -> None:
        chunks = list(Template(self.path).stream({"li": "x"}))
        assert all(isinstance(chunk, str) for chunk in chunks)
        assert "".join(chunks) == DOCUMENT.replace("item", "x")

    def test_template_is_callable(self) -> None:
        template = Template(self.path)
        assert "".join(template({"li": "x"})) == template.render({"li": "x"})

    def test_inject_transform_is_reusable(self) -> None:
        transform = Template("<p></p>").inject({"p": ["a", "b"]})
        assert "".join(transform(["<p></p><p></p>"])) == "<p>a</p><p>b</p>"
        assert "".join(transform(["<p></p>"])) == "<p>a</p>"

    def test_callback_success(self) -> None:
        calls = []
        Template(self.path).callback({"h1": "Hi"}, lambda error, html: calls.append((error, html)))
        assert calls == [(None, DOCUMENT.replace("Title", "Hi"))]

    def test_callback_error(self) -> None:
        calls = []
        missing = pathlib.Path(self.directory.name) / "missing.html"
        Template(missing).callback({}, lambda error, html: calls.append((error, html)))
        assert len(calls) == 1
        assert isinstance(calls[0][0], FileNotFoundError)
        assert calls[0][1] is None

    def test_render_async(self) -> None:
        result = asyncio.run(Template(self.path).render_async({"h1": "Async"}))
        assert result == DOCUMENT.replace("Title", "Async")

    def test_missing_file_raises_on_render(self) -> None:
        template = Template(pathlib.Path(self.directory.name) / "missing.html")
        with self.assertRaises(FileNotFoundError):
            template.render({})


class TestHelpers(unittest.TestCase):
    def test_concat_mixes_text_and_bytes(self) -> None:
        assert concat(["a", b"b", bytearray(b"c")]) == "abc"
        assert concat([]) == ""

    def test_opts_validation(self) -> None:
        with self.assertRaises(ValueError):
            TemplateOpts(chunk_size=0)
        opts = TemplateOpts(encoding="latin-1", chunk_size="10")
        assert opts.chunk_size == 10
        assert opts.encoding == "latin-1"

    def test_latin1_template(self) -> None:
        template = Template("<p>é</p>".encode("latin-1"), opts=TemplateOpts(encoding="latin-1"))
        assert template.render({}) == "<p>é</p>"


if __name__ == "__main__":
    unittest.main()
