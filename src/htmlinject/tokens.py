class Attribute:
    __slots__ = ("name", "raw", "value")

    def __init__(self, name, value, raw):
        self.name = name
        self.value = value
        self.raw = raw

    def __repr__(self):
        return f"Attribute({self.name!r}, {self.value!r})"


class Tag:
    """A start or end tag together with the exact source text it came from."""

    __slots__ = ("attrs", "head", "kind", "line", "name", "raw", "self_closing", "tail")

    START = 0
    END = 1

    def __init__(self, kind, name, attrs, raw, self_closing=False, line=None, head=None, tail=None):
        self.kind = kind
        self.name = name
        self.attrs = attrs if attrs is not None else []
        self.raw = raw
        self.self_closing = bool(self_closing)
        self.line = line
        # "<name" and everything after the last attribute, as written.
        self.head = head
        self.tail = tail

    def __repr__(self):
        prefix = "/" if self.kind == Tag.END else ""
        return f"Tag(<{prefix}{self.name}>, line={self.line})"


class Characters:
    """Verbatim source text: character data, comments, doctypes."""

    __slots__ = ("data",)

    def __init__(self, data):
        self.data = data

    def __repr__(self):
        return f"Characters({self.data!r})"
