"""HTML element constants used by the streaming rewriter.

Elements are organized into lists to keep a stable iteration order; the
module-level sets are derived from them for fast lookups.

Usage:
    from htmlinject.constants import VOID_ELEMENTS, RAWTEXT_ELEMENTS

References:
    - https://html.spec.whatwg.org/multipage/syntax.html#void-elements
    - https://html.spec.whatwg.org/multipage/syntax.html#optional-tags
"""

# HTML Element Sets
VOID_ELEMENTS = [
    "area",
    "base",
    "basefont",
    "bgsound",
    "br",
    "col",
    "embed",
    "hr",
    "img",
    "input",
    "keygen",
    "link",
    "meta",
    "param",
    "source",
    "track",
    "wbr",
]

# Elements whose content is not markup: the tokenizer only looks for the
# matching end tag inside them.
RAWTEXT_ELEMENTS = [
    "title",
    "textarea",
    "style",
    "script",
    "xmp",
    "iframe",
    "noembed",
    "noframes",
]

# Everything after <plaintext> is text.
PLAINTEXT_ELEMENT = "plaintext"

_P_CLOSERS = [
    "address",
    "article",
    "aside",
    "blockquote",
    "center",
    "details",
    "dialog",
    "dir",
    "div",
    "dl",
    "fieldset",
    "figcaption",
    "figure",
    "footer",
    "form",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "header",
    "hgroup",
    "hr",
    "listing",
    "main",
    "menu",
    "nav",
    "ol",
    "p",
    "pre",
    "search",
    "section",
    "summary",
    "table",
    "ul",
]

# Open element -> start tags that imply its end tag when it is the current
# node. Only the common optional-end-tag cases are covered.
IMPLIED_END_TAGS = {
    "p": _P_CLOSERS,
    "li": ["li"],
    "dt": ["dt", "dd"],
    "dd": ["dt", "dd"],
    "option": ["option", "optgroup"],
    "optgroup": ["optgroup"],
    "rt": ["rt", "rp"],
    "rp": ["rt", "rp"],
    "thead": ["tbody", "tfoot"],
    "tbody": ["tbody", "tfoot"],
    "tr": ["tr", "tbody", "tfoot"],
    "td": ["td", "th", "tr", "tbody", "tfoot"],
    "th": ["td", "th", "tr", "tbody", "tfoot"],
}

VOID_ELEMENT_SET = frozenset(VOID_ELEMENTS)
RAWTEXT_ELEMENT_SET = frozenset(RAWTEXT_ELEMENTS)
IMPLIED_END_TAG_SETS = {name: frozenset(closers) for name, closers in IMPLIED_END_TAGS.items()}

# Characters the HTML tokenizer treats as whitespace inside tags.
HTML_WHITESPACE = "\t\n\f\r "
