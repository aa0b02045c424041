"""
chainhttp.tier1_runtime.markup
───────────────────────────────
Markup trees for request and response bodies. Both parsers produce
``xml.etree.ElementTree.Element`` trees so callers navigate XML and HTML
the same way.

  parse_xml  — strict. A DOCTYPE declaration is accepted, external DTDs are
               never fetched (XHTML entities come from html.entities),
               malformed input raises ParseError.
  parse_html — lenient tag-soup parsing: unclosed and stray tags are
               repaired rather than rejected.
"""
from __future__ import annotations

import codecs
import xml.etree.ElementTree as ET
from html.entities import name2codepoint
from html.parser import HTMLParser
from typing import BinaryIO

from chainhttp.tier0_core.config import get_config
from chainhttp.tier0_core.errors import ParseError, TransferError

_VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input", "link",
    "meta", "param", "source", "track", "wbr",
})

_XHTML_ENTITIES = {name: chr(codepoint) for name, codepoint in name2codepoint.items()}

# Opening one of these closes an open sibling of the listed tags.
_IMPLIED_END = {
    "p": {"p"},
    "li": {"li"},
    "option": {"option"},
    "tr": {"tr", "td", "th"},
    "td": {"td", "th"},
    "th": {"td", "th"},
    "dt": {"dt", "dd"},
    "dd": {"dt", "dd"},
}


def serialize(markup: ET.Element | ET.ElementTree) -> str:
    """Render a markup tree as text."""
    if isinstance(markup, ET.ElementTree):
        markup = markup.getroot()
    return ET.tostring(markup, encoding="unicode")


def _decoded_chunks(stream: BinaryIO, charset: str):
    try:
        decoder = codecs.getincrementaldecoder(charset)()
    except LookupError as exc:
        raise TransferError(f"Unknown charset {charset!r}: {exc}") from exc
    size = get_config().transfer_chunk_size
    while True:
        try:
            chunk = stream.read(size)
        except OSError as exc:
            raise TransferError(f"Reading markup body failed: {exc}") from exc
        if not chunk:
            break
        yield decoder.decode(chunk)
    yield decoder.decode(b"", final=True)


def parse_xml(stream: BinaryIO, charset: str, content_type: str | None = None) -> ET.Element:
    """
    XHTML named entities (``&nbsp;``, ``&copy;`` ...) resolve from a local
    table, so documents declaring the XHTML DTDs parse without it.
    """
    parser = ET.XMLParser()
    parser.entity.update(_XHTML_ENTITIES)
    try:
        for text in _decoded_chunks(stream, charset):
            if text:
                parser.feed(text)
        return parser.close()
    except (ET.ParseError, UnicodeDecodeError) as exc:
        raise ParseError(f"Malformed xml body: {exc}", content_type=content_type) from exc


class _TagSoupBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.document = ET.Element("#document")
        self._stack: list[ET.Element] = [self.document]

    @property
    def _current(self) -> ET.Element:
        return self._stack[-1]

    def _append_text(self, data: str) -> None:
        node = self._current
        if len(node):
            last = node[-1]
            last.tail = (last.tail or "") + data
        else:
            node.text = (node.text or "") + data

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        closes = _IMPLIED_END.get(tag)
        if closes and len(self._stack) > 1 and self._current.tag in closes:
            self._stack.pop()
        element = ET.SubElement(
            self._current, tag, {k: (v if v is not None else "") for k, v in attrs}
        )
        if tag not in _VOID_TAGS:
            self._stack.append(element)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        ET.SubElement(self._current, tag, {k: (v if v is not None else "") for k, v in attrs})

    def handle_endtag(self, tag: str) -> None:
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].tag == tag:
                del self._stack[depth:]
                return
        # stray end tag

    def handle_data(self, data: str) -> None:
        self._append_text(data)

    def result(self) -> ET.Element:
        children = list(self.document)
        stray_text = (self.document.text or "").strip() or any(
            (child.tail or "").strip() for child in children
        )
        if len(children) == 1 and not stray_text:
            root = children[0]
            root.tail = None
            return root
        self.document.tag = "html"
        return self.document


def parse_html(stream: BinaryIO, charset: str, content_type: str | None = None) -> ET.Element:
    builder = _TagSoupBuilder()
    try:
        for text in _decoded_chunks(stream, charset):
            if text:
                builder.feed(text)
        builder.close()
    except UnicodeDecodeError as exc:
        raise ParseError(f"Html body is not valid {charset}: {exc}", content_type=content_type) from exc
    return builder.result()


__sdk_export__ = {
    "exports": ["parse_xml", "parse_html", "serialize"],
    "description": "Strict xml and lenient html parsing into element trees",
    "tier": "tier1_runtime",
    "module": "markup",
}
