"""
MPD augmentation for content steering.

Appends one BaseURL per service location and sets the single ContentSteering
element on an origin MPD. The new elements are spliced into the original
bytes, so everything else in the document comes out exactly as it went in:
the prolog, quoting, character references, empty-element forms, comments
and the existing BaseURL elements, which stay available as fallbacks.

lxml checks the input (well-formed, MPD root, no entity resolution) and the
spliced output; expat reports the byte offsets of the root's children.
"""

import codecs
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union
from xml.parsers import expat
from xml.sax.saxutils import escape, quoteattr

from lxml import etree

from steering.core.errors import NoConfigurationError, ParseError, SerializationError
from steering.core.locations import SteeringSnapshot

logger = logging.getLogger(__name__)

MPD_TAG = "MPD"
BASE_URL_TAG = "BaseURL"
CONTENT_STEERING_TAG = "ContentSteering"
PROGRAM_INFORMATION_TAG = "ProgramInformation"

SERVICE_LOCATION_ATTR = "serviceLocation"
DEFAULT_SERVICE_LOCATION_ATTR = "defaultServiceLocation"
QUERY_BEFORE_START_ATTR = "queryBeforeStart"

_WIDE_BOMS = (codecs.BOM_UTF32_LE, codecs.BOM_UTF32_BE, codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)
_WHITESPACE = b" \t\r\n"
_QUOTES = (ord('"'), ord("'"))
_GT = ord(">")
_SLASH = ord("/")


def _split_qname(qname: str) -> Tuple[Optional[str], str]:
    prefix, _, local = qname.rpartition(":")
    return (prefix or None), local


def _tag_end(raw: bytes, start: int) -> int:
    """Offset just past the '>' closing the tag that starts at start."""
    quote = None
    for pos in range(start + 1, len(raw)):
        byte = raw[pos]
        if quote is not None:
            if byte == quote:
                quote = None
        elif byte in _QUOTES:
            quote = byte
        elif byte == _GT:
            return pos + 1
    raise ParseError("Failed to parse MPD: unterminated tag")


def _whitespace_before(raw: bytes, pos: int, floor: int) -> int:
    while pos > floor and raw[pos - 1] in _WHITESPACE:
        pos -= 1
    return pos


@dataclass
class MpdDocument:
    """An origin MPD and the byte offsets needed to splice into it."""
    raw: bytes
    encoding: str
    root_qname: str
    root_start_end: int
    root_empty: bool
    indent: str = ""
    base_url_end: Optional[int] = None
    program_information_end: Optional[int] = None
    # (start, end, qname, attributes) of each direct ContentSteering child
    content_steering: List[Tuple[int, int, str, Dict[str, str]]] = field(default_factory=list)

    @property
    def prefix(self) -> Optional[str]:
        return _split_qname(self.root_qname)[0]

    @property
    def insert_at(self) -> int:
        """Right after the BaseURL block, else after ProgramInformation, else the root start tag."""
        if self.base_url_end is not None:
            return self.base_url_end
        if self.program_information_end is not None:
            return self.program_information_end
        return self.root_start_end

    def qualify(self, name: str) -> str:
        return f"{self.prefix}:{name}" if self.prefix else name


class _ChildScanner:
    """Collects offsets of the root element and its direct children."""

    def __init__(self, raw: bytes):
        self.raw = raw
        self.root_qname = None
        self.root_start_end = None
        self.first_child_start = None
        self.base_url_end = None
        self.program_information_end = None
        self.content_steering = []
        self._stack = []
        self._parser = expat.ParserCreate()
        self._parser.StartElementHandler = self._start
        self._parser.EndElementHandler = self._end
        # A DefaultHandler keeps expat from expanding internal entities
        self._parser.DefaultHandler = self._skip

    def scan(self) -> "_ChildScanner":
        self._parser.Parse(self.raw, True)
        return self

    def _skip(self, data):
        pass

    def _start(self, name, attrs):
        start = self._parser.CurrentByteIndex
        depth = len(self._stack)
        tag_end = _tag_end(self.raw, start) if depth <= 1 else None
        if depth == 0:
            self.root_qname = name
            self.root_start_end = tag_end
        elif depth == 1 and self.first_child_start is None:
            self.first_child_start = start
        self._stack.append((name, start, tag_end, attrs))

    def _end(self, name):
        end_tag = self._parser.CurrentByteIndex
        qname, start, tag_end, attrs = self._stack.pop()
        if len(self._stack) != 1:
            return

        if self.raw[tag_end - 2] == _SLASH:
            end = tag_end
        else:
            end = self.raw.index(b">", end_tag) + 1

        prefix, local = _split_qname(qname)
        if prefix != _split_qname(self.root_qname)[0]:
            return
        if local == BASE_URL_TAG:
            self.base_url_end = end
        elif local == PROGRAM_INFORMATION_TAG:
            self.program_information_end = end
        elif local == CONTENT_STEERING_TAG:
            self.content_steering.append((start, end, qname, attrs))


class DocumentAugmenter:
    """Injects BaseURL and ContentSteering elements into an MPD."""

    def __init__(self):
        self._parser = etree.XMLParser(
            resolve_entities=False,
            no_network=True,
            remove_blank_text=False,
            remove_comments=False,
        )

    def _check(self, data: bytes) -> etree._Element:
        root = etree.fromstring(data, self._parser)
        if etree.QName(root).localname != MPD_TAG:
            raise ParseError(f"Failed to parse MPD: unexpected root element <{root.tag}>")
        return root

    def parse(self, raw_mpd: Union[bytes, str]) -> MpdDocument:
        if isinstance(raw_mpd, str):
            raw_mpd = raw_mpd.encode("utf-8")
        if not raw_mpd or not raw_mpd.strip():
            raise ParseError("Failed to parse MPD: empty document")

        try:
            root = self._check(raw_mpd)
        except (etree.XMLSyntaxError, ValueError) as e:
            raise ParseError(f"Failed to parse MPD: {e}") from e

        encoding = root.getroottree().docinfo.encoding or "UTF-8"
        if raw_mpd.startswith(_WIDE_BOMS) or not self._ascii_compatible(encoding):
            raise ParseError(f"Failed to parse MPD: unsupported encoding {encoding}")

        try:
            scanner = _ChildScanner(raw_mpd).scan()
        except expat.ExpatError as e:
            raise ParseError(f"Failed to parse MPD: {e}") from e

        indent = ""
        if scanner.first_child_start is not None:
            indent_start = _whitespace_before(raw_mpd, scanner.first_child_start, scanner.root_start_end)
            indent = raw_mpd[indent_start:scanner.first_child_start].decode("ascii")

        return MpdDocument(
            raw=raw_mpd,
            encoding=encoding,
            root_qname=scanner.root_qname,
            root_start_end=scanner.root_start_end,
            root_empty=raw_mpd[scanner.root_start_end - 2] == _SLASH,
            indent=indent,
            base_url_end=scanner.base_url_end,
            program_information_end=scanner.program_information_end,
            content_steering=scanner.content_steering,
        )

    def augment(self, document: MpdDocument, snapshot: SteeringSnapshot) -> bytes:
        if not snapshot.configured:
            raise NoConfigurationError("Failed to generate MPD. Error: no BaseUrl found")

        steering_url = snapshot.parameters.reload_uri
        default_location = snapshot.table.default()

        fragments = [
            self._element(document.qualify(BASE_URL_TAG), {SERVICE_LOCATION_ATTR: location.id}, location.uri)
            for location in snapshot.table
        ]

        edits = []
        if document.content_steering:
            (start, end, qname, attrs), *duplicates = document.content_steering
            edits.append((start, end, self._content_steering(qname, attrs, steering_url, default_location.id)))
            for start, end, _, _ in duplicates:
                edits.append((_whitespace_before(document.raw, start, document.root_start_end), end, ""))
        else:
            fragments.append(self._content_steering(document.qualify(CONTENT_STEERING_TAG), {},
                                                    steering_url, default_location.id))

        insertion = "".join(document.indent + fragment for fragment in fragments)
        anchor = document.insert_at
        if document.root_empty:
            # <MPD .../> becomes <MPD ...>...</MPD>
            edits.append((anchor - 2, anchor, f">{insertion}</{document.root_qname}>"))
        else:
            edits.append((anchor, anchor, insertion))

        logger.debug(f"Splicing {len(snapshot.table)} BaseURL(s) into MPD at byte {anchor}")
        return self._splice(document, edits)

    def serialize(self, output: bytes) -> bytes:
        """Check that the spliced document is still a well-formed MPD."""
        try:
            self._check(output)
        except (etree.XMLSyntaxError, ParseError, ValueError) as e:
            raise SerializationError(f"Failed to serialize MPD: {e}") from e
        return output

    def process(self, raw_mpd: Union[bytes, str], snapshot: SteeringSnapshot) -> bytes:
        return self.serialize(self.augment(self.parse(raw_mpd), snapshot))

    @staticmethod
    def _ascii_compatible(encoding: str) -> bool:
        try:
            return "<>".encode(encoding) == b"<>"
        except LookupError:
            return False

    @staticmethod
    def _element(qname: str, attrs: Dict[str, str], text: str) -> str:
        attributes = "".join(f" {name}={quoteattr(value)}" for name, value in attrs.items())
        return f"<{qname}{attributes}>{escape(text)}</{qname}>"

    def _content_steering(self, qname: str, attrs: Dict[str, str],
                          steering_url: str, default_location_id: str) -> str:
        # Existing attributes keep their position; proxyServerURL and friends survive
        attrs = dict(attrs)
        attrs[DEFAULT_SERVICE_LOCATION_ATTR] = default_location_id
        attrs[QUERY_BEFORE_START_ATTR] = "true"
        return self._element(qname, attrs, steering_url)

    @staticmethod
    def _splice(document: MpdDocument, edits: List[Tuple[int, int, str]]) -> bytes:
        raw = document.raw
        # Back to front so earlier offsets stay valid; a removal goes before an insertion at the same offset
        for start, end, text in sorted(edits, key=lambda edit: (edit[0], edit[1]), reverse=True):
            try:
                replacement = text.encode(document.encoding, errors="xmlcharrefreplace")
            except LookupError as e:
                raise SerializationError(f"Failed to serialize MPD: {e}") from e
            raw = raw[:start] + replacement + raw[end:]
        return raw
