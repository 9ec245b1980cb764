"""Incremental, raw-preserving HTML tokenizer.

Unlike a tree-building tokenizer this one never normalizes its input: every
token keeps the exact source text it was produced from, so joining the raw
text of all tokens reproduces the document byte for byte. Markup that is cut
off at a chunk boundary is held back until the next call to ``feed``.
"""

import html
import re

from .constants import HTML_WHITESPACE, PLAINTEXT_ELEMENT, RAWTEXT_ELEMENT_SET
from .tokens import Attribute, Characters, Tag

_ASCII_LOWER_TABLE = str.maketrans({chr(code): chr(code + 32) for code in range(65, 91)})

_TAG_NAME_PATTERN = re.compile(r"[^\t\n\f\r />]+")
_ATTR_PATTERN = re.compile(
    r"""
    ([\t\n\f\r /]*)                   # separator
    ([^\t\n\f\r />][^\t\n\f\r /=>]*)  # name
    (?:
        [\t\n\f\r ]*=[\t\n\f\r ]*
        ("[^"]*"|'[^']*'|[^\t\n\f\r >]*)  # value
    )?
    """,
    re.VERBOSE,
)

_rawtext_end_patterns = {}


def _rawtext_end_pattern(name):
    pattern = _rawtext_end_patterns.get(name)
    if pattern is None:
        pattern = re.compile(rf"</{re.escape(name)}[\t\n\f\r />]", re.IGNORECASE)
        _rawtext_end_patterns[name] = pattern
    return pattern


def _is_ascii_alpha(c):
    return ("a" <= c <= "z") or ("A" <= c <= "Z")


class TokenizerOpts:
    __slots__ = ("discard_bom",)

    def __init__(self, discard_bom=False):
        self.discard_bom = bool(discard_bom)


class Tokenizer:
    DATA = 0
    RAWTEXT = 1
    PLAINTEXT = 2

    __slots__ = ("buffer", "line", "opts", "rawtext_tag_name", "started", "state")

    def __init__(self, opts=None):
        self.opts = opts or TokenizerOpts()
        self.state = self.DATA
        self.buffer = ""
        self.line = 1
        self.rawtext_tag_name = None
        self.started = False

    def feed(self, chunk):
        """Consume a chunk of text and return the tokens completed so far."""
        if not self.started and chunk:
            self.started = True
            if self.opts.discard_bom and chunk[0] == "\ufeff":
                chunk = chunk[1:]
        self.buffer += chunk
        return self._run(final=False)

    def close(self):
        """Flush everything still buffered; incomplete markup becomes text."""
        return self._run(final=True)

    # ---------------------
    # Scanning
    # ---------------------

    def _run(self, final):
        tokens = []
        buffer = self.buffer
        length = len(buffer)
        pos = 0

        while pos < length:
            if self.state == self.PLAINTEXT:
                self._emit_text(tokens, buffer[pos:])
                pos = length
                break

            if self.state == self.RAWTEXT:
                name = self.rawtext_tag_name
                match = _rawtext_end_pattern(name).search(buffer, pos)
                if match is not None:
                    self._emit_text(tokens, buffer[pos : match.start()])
                    pos = match.start()
                    self.state = self.DATA
                    self.rawtext_tag_name = None
                    continue
                if final:
                    self._emit_text(tokens, buffer[pos:])
                    pos = length
                    break
                # Hold back anything that could be the start of the end tag.
                safe = max(pos, length - len(name) - 2)
                self._emit_text(tokens, buffer[pos:safe])
                pos = safe
                break

            lt = buffer.find("<", pos)
            if lt == -1:
                self._emit_text(tokens, buffer[pos:])
                pos = length
                break
            if lt > pos:
                self._emit_text(tokens, buffer[pos:lt])
                pos = lt

            scanned = self._scan_markup(buffer, pos)
            if scanned is None:
                if final:
                    self._emit_text(tokens, buffer[pos:])
                    pos = length
                break
            token, pos = scanned
            if isinstance(token, Tag):
                self._emit_tag(tokens, token)
            else:
                self._emit_text(tokens, token.data)

        self.buffer = buffer[pos:]
        return tokens

    def _scan_markup(self, buffer, pos):
        """Scan the construct starting with the '<' at ``pos``.

        Returns ``(token, end)`` or None when the buffer ends before the
        construct does.
        """
        length = len(buffer)
        if pos + 1 >= length:
            return None
        c = buffer[pos + 1]

        if c == "!":
            if buffer.startswith("<!--", pos):
                if buffer.startswith("<!-->", pos):
                    end = pos + 5
                elif buffer.startswith("<!--->", pos):
                    end = pos + 6
                else:
                    close = buffer.find("-->", pos + 4)
                    if close == -1:
                        return None
                    end = close + 3
                return Characters(buffer[pos:end]), end
            if "<!--".startswith(buffer[pos:]):
                return None
            return self._scan_bogus(buffer, pos)

        if c == "?":
            return self._scan_bogus(buffer, pos)

        if c == "/":
            if pos + 2 >= length:
                return None
            c2 = buffer[pos + 2]
            if c2 == ">":
                return Characters("</>"), pos + 3
            if not _is_ascii_alpha(c2):
                return self._scan_bogus(buffer, pos)
            gt = buffer.find(">", pos + 2)
            if gt == -1:
                return None
            raw = buffer[pos : gt + 1]
            name = _TAG_NAME_PATTERN.match(raw, 2).group(0).translate(_ASCII_LOWER_TABLE)
            return Tag(Tag.END, name, None, raw, line=self.line), gt + 1

        if _is_ascii_alpha(c):
            end = self._find_start_tag_end(buffer, pos + 1)
            if end == -1:
                return None
            return self._parse_start_tag(buffer[pos:end]), end

        return Characters("<"), pos + 1

    def _scan_bogus(self, buffer, pos):
        gt = buffer.find(">", pos + 2)
        if gt == -1:
            return None
        return Characters(buffer[pos : gt + 1]), gt + 1

    def _find_start_tag_end(self, buffer, pos):
        """Index just past the '>' closing the tag, honoring quoted values."""
        length = len(buffer)
        while pos < length:
            c = buffer[pos]
            if c == ">":
                return pos + 1
            pos += 1
            if c != "=":
                continue
            while pos < length and buffer[pos] in HTML_WHITESPACE:
                pos += 1
            if pos >= length:
                return -1
            quote = buffer[pos]
            if quote == '"' or quote == "'":
                close = buffer.find(quote, pos + 1)
                if close == -1:
                    return -1
                pos = close + 1
        return -1

    def _parse_start_tag(self, raw):
        name_match = _TAG_NAME_PATTERN.match(raw, 1)
        name_end = name_match.end()
        inner_end = len(raw) - 1

        attrs = []
        pos = name_end
        while pos < inner_end:
            match = _ATTR_PATTERN.match(raw, pos, inner_end)
            if match is None:
                break
            value = match.group(3)
            if value is None:
                value = ""
            elif value[:1] in ('"', "'"):
                value = value[1:-1]
            if "&" in value:
                value = html.unescape(value)
            attr_name = match.group(2).translate(_ASCII_LOWER_TABLE)
            attrs.append(Attribute(attr_name, value, match.group(0)))
            pos = match.end()

        tail = raw[pos:]
        self_closing = tail[:-1].rstrip(HTML_WHITESPACE).endswith("/")
        return Tag(
            Tag.START,
            name_match.group(0).translate(_ASCII_LOWER_TABLE),
            attrs,
            raw,
            self_closing=self_closing,
            line=self.line,
            head=raw[:name_end],
            tail=tail,
        )

    # ---------------------
    # Emission
    # ---------------------

    def _emit_text(self, tokens, data):
        if not data:
            return
        self.line += data.count("\n")
        if tokens and isinstance(tokens[-1], Characters):
            tokens[-1] = Characters(tokens[-1].data + data)
            return
        tokens.append(Characters(data))

    def _emit_tag(self, tokens, tag):
        self.line += tag.raw.count("\n")
        tokens.append(tag)
        if tag.kind != Tag.START or tag.self_closing:
            return
        if tag.name in RAWTEXT_ELEMENT_SET:
            self.state = self.RAWTEXT
            self.rawtext_tag_name = tag.name
        elif tag.name == PLAINTEXT_ELEMENT:
            self.state = self.PLAINTEXT
