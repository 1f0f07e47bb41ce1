"""
Search results streams

Splunk returns search results as one or more <results> documents. Export
endpoints concatenate many of them, each with its own XML declaration, so
the body is wrapped in a synthetic <stream> root before parsing.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Union

from .context import Response
from .exceptions import InvalidDataError, RequestError
from .models import Message, MessageType

logger = logging.getLogger(__name__)

_XML_DECLARATION = re.compile(r"<\?xml[^>]*\?>")

_ERROR_TYPES = (MessageType.ERROR, MessageType.FATAL)

FieldValue = Union[str, List[str]]


@dataclass
class SearchResult:
    """One <result> record"""
    offset: int = 0
    fields: Dict[str, FieldValue] = field(default_factory=dict)
    segmented_raw: Optional[str] = None

    def __getitem__(self, name: str) -> FieldValue:
        return self.fields[name]

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __len__(self) -> int:
        return len(self.fields)

    def get(self, name: str, default: Optional[FieldValue] = None) -> Optional[FieldValue]:
        return self.fields.get(name, default)

    def keys(self):
        return self.fields.keys()

    def to_dict(self) -> Dict[str, FieldValue]:
        return dict(self.fields)


@dataclass
class SearchPreview:
    """One non-empty <results> block of a preview stream"""
    is_final: bool
    field_names: List[str]
    results: List[SearchResult]


def _parse_stream(text: str) -> ET.Element:
    body = _XML_DECLARATION.sub("", text)
    try:
        return ET.fromstring(f"<stream>{body}</stream>")
    except ET.ParseError as e:
        raise InvalidDataError(f"Malformed search results: {e}") from e


def _check_messages(element: ET.Element) -> List[Message]:
    """Collect the block's messages, raising on ERROR or FATAL ones"""
    messages = []

    for msg in element.findall("messages/msg"):
        messages.append(Message(type=msg.get("type", "INFO"), text=(msg.text or "").strip()))

    errors = [message for message in messages if message.type in _ERROR_TYPES]
    if errors:
        raise RequestError(200, "OK", errors)

    return messages


def _read_field(element: ET.Element) -> FieldValue:
    raw = element.find("v")
    if raw is not None:
        return "".join(raw.itertext())

    values = ["".join(value.itertext()) for value in element.findall("value")]
    if len(values) == 1:
        return values[0]
    return values


def _read_result(element: ET.Element) -> SearchResult:
    result = SearchResult(offset=int(element.get("offset", "0")))

    for field_element in element.findall("field"):
        name = field_element.get("k")
        if name is None:
            continue
        result.fields[name] = _read_field(field_element)

        raw = field_element.find("v")
        if raw is not None and name == "_raw":
            result.segmented_raw = ET.tostring(raw, encoding="unicode")

    return result


def _field_names(element: ET.Element) -> List[str]:
    return [(name.text or "") for name in element.findall("meta/fieldOrder/field")]


class SearchResultStream:
    """Results of a search job or a oneshot search"""

    def __init__(self, text: str):
        self.text = text
        self.field_names: List[str] = []
        self.is_final = True
        self.messages: List[Message] = []
        self.read_count = 0

    @classmethod
    def from_response(cls, response: Response) -> "SearchResultStream":
        response.ensure_status(200, 204)
        return cls(response.text)

    def __iter__(self) -> Iterator[SearchResult]:
        self.messages = []
        self.read_count = 0

        if not self.text.strip():
            return

        for block in _parse_stream(self.text).findall("results"):
            self.is_final = block.get("preview", "0") == "0"
            self.field_names = _field_names(block) or self.field_names
            self.messages.extend(_check_messages(block))

            for element in block.findall("result"):
                self.read_count += 1
                yield _read_result(element)

    def read_all(self) -> List[SearchResult]:
        return list(self)


class SearchPreviewStream:
    """Previews produced by an export search; empty blocks are skipped"""

    def __init__(self, text: str):
        self.text = text
        self.read_count = 0

    @classmethod
    def from_response(cls, response: Response) -> "SearchPreviewStream":
        response.ensure_status(200)
        return cls(response.text)

    def __iter__(self) -> Iterator[SearchPreview]:
        self.read_count = 0

        if not self.text.strip():
            return

        for block in _parse_stream(self.text).findall("results"):
            _check_messages(block)

            results = [_read_result(element) for element in block.findall("result")]
            if not results:
                logger.debug("Skipping empty preview")
                continue

            self.read_count += 1
            yield SearchPreview(
                is_final=block.get("preview", "0") == "0",
                field_names=_field_names(block),
                results=results,
            )


def read_result(text: str) -> SearchResult:
    """Read the single <result> of a response, e.g. an event sent to receivers/simple"""
    try:
        root = ET.fromstring(_XML_DECLARATION.sub("", text).strip())
    except ET.ParseError as e:
        raise InvalidDataError(f"Malformed result: {e}") from e

    element = root if root.tag == "result" else root.find(".//result")
    if element is None:
        raise InvalidDataError("Response contains no result")

    return _read_result(element)
