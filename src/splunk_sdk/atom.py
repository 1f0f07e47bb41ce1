"""
Atom feed parsing

Splunk answers management requests with Atom documents whose <content>
elements hold s:dict/s:list trees. This module turns those documents into
AtomFeed and AtomEntry models with plain Python content values.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union
from xml.parsers.expat import ExpatError

import xmltodict
from pydantic import BaseModel, Field

from .converters import to_build_number, to_version
from .exceptions import InvalidDataError
from .models import Message, Pagination

logger = logging.getLogger(__name__)

NAMESPACES = {
    "http://www.w3.org/2005/Atom": None,
    "http://dev.splunk.com/ns/rest": "s",
    "http://a9.com/-/spec/opensearch/1.1/": "opensearch",
}

_LIST_ELEMENTS = ("entry", "link", "s:key", "s:item", "s:msg", "msg")


class AtomEntry(BaseModel):
    """One <entry> of an Atom document"""
    id: str
    title: str = ""
    author: Optional[str] = None
    published: Optional[datetime] = None
    updated: Optional[datetime] = None
    links: Dict[str, str] = Field(default_factory=dict)
    content: Any = None


class AtomFeed(BaseModel):
    """A <feed> document"""
    id: str
    title: str = ""
    author: Optional[str] = None
    updated: Optional[datetime] = None
    generator_build: Optional[int] = None
    generator_version: Optional[Tuple[int, ...]] = None
    links: Dict[str, str] = Field(default_factory=dict)
    pagination: Pagination = Field(default_factory=Pagination)
    messages: List[Message] = Field(default_factory=list)
    entries: List[AtomEntry] = Field(default_factory=list)


def _parse(text: str) -> Dict[str, Any]:
    try:
        return xmltodict.parse(
            text,
            process_namespaces=True,
            namespaces=NAMESPACES,
            force_list=_LIST_ELEMENTS,
        )
    except ExpatError as e:
        raise InvalidDataError(f"Malformed XML response: {e}") from e


def _text(node: Any) -> Optional[str]:
    if node is None or isinstance(node, str):
        return node
    return node.get("#text")


def parse_value(node: Any) -> Any:
    """Convert an s:key, s:item or <content> node to a Python value."""
    if node is None or isinstance(node, str):
        return node
    if "s:dict" in node:
        return parse_dict(node["s:dict"])
    if "s:list" in node:
        return parse_list(node["s:list"])
    return node.get("#text")


def parse_dict(node: Any) -> Dict[str, Any]:
    if not node:
        return {}
    return {key["@name"]: parse_value(key) for key in node.get("s:key", [])}


def parse_list(node: Any) -> List[Any]:
    if not node:
        return []
    return [parse_value(item) for item in node.get("s:item", [])]


def _parse_links(nodes: Optional[List[Dict[str, str]]]) -> Dict[str, str]:
    return {link["@rel"]: link["@href"] for link in nodes or [] if "@rel" in link}


def _parse_author(node: Any) -> Optional[str]:
    if isinstance(node, dict):
        return node.get("name")
    return node


def _parse_messages(node: Any) -> List[Message]:
    if not node:
        return []

    messages = []
    for msg in node.get("s:msg", []) + node.get("msg", []):
        if isinstance(msg, str):
            continue
        messages.append(Message(type=msg.get("@type", "INFO"), text=msg.get("#text") or ""))
    return messages


def _parse_entry(node: Dict[str, Any]) -> AtomEntry:
    return AtomEntry(
        id=_text(node.get("id")) or "",
        title=_text(node.get("title")) or "",
        author=_parse_author(node.get("author")),
        published=_text(node.get("published")),
        updated=_text(node.get("updated")),
        links=_parse_links(node.get("link")),
        content=parse_value(node.get("content")),
    )


def _parse_feed(node: Dict[str, Any]) -> AtomFeed:
    generator = node.get("generator") or {}
    build = generator.get("@build")
    version = generator.get("@version")

    return AtomFeed(
        id=_text(node.get("id")) or "",
        title=_text(node.get("title")) or "",
        author=_parse_author(node.get("author")),
        updated=_text(node.get("updated")),
        generator_build=to_build_number(build) if build else None,
        generator_version=to_version(version) if version else None,
        links=_parse_links(node.get("link")),
        pagination=Pagination(
            total_results=_text(node.get("opensearch:totalResults")) or 0,
            items_per_page=_text(node.get("opensearch:itemsPerPage")) or 0,
            start_index=_text(node.get("opensearch:startIndex")) or 0,
        ),
        messages=_parse_messages(node.get("s:messages")),
        entries=[_parse_entry(entry) for entry in node.get("entry", [])],
    )


def parse_feed(text: str) -> AtomFeed:
    """Parse a <feed> document."""
    document = _parse(text)

    if "feed" not in document:
        raise InvalidDataError(f"Expected an Atom feed, found <{next(iter(document), '')}>")

    feed = _parse_feed(document["feed"] or {})
    logger.debug(f"Parsed feed {feed.title!r} with {len(feed.entries)} entries")
    return feed


def parse_document(text: str) -> Union[AtomFeed, AtomEntry]:
    """Parse a document whose root is either <feed> or <entry>."""
    document = _parse(text)

    if "feed" in document:
        return _parse_feed(document["feed"] or {})

    if "entry" in document:
        entries = document["entry"]
        return _parse_entry(entries[0] if isinstance(entries, list) else entries)

    raise InvalidDataError(f"Expected an Atom document, found <{next(iter(document), '')}>")


def parse_entry(text: str) -> AtomEntry:
    """Parse an <entry> document, or the first entry of a <feed>."""
    document = parse_document(text)

    if isinstance(document, AtomFeed):
        if not document.entries:
            raise InvalidDataError(f"Feed {document.title!r} has no entries")
        return document.entries[0]

    return document


def read_response_element(text: str, name: str) -> Optional[str]:
    """Read a child of a <response> document, e.g. the <sid> of a new job."""
    document = _parse(text)
    response = document.get("response") or {}
    return _text(response.get(name))


def read_messages(text: str) -> List[Message]:
    """Read the <messages> of an error response; non-XML bodies have none."""
    if not text or not text.lstrip().startswith("<"):
        return []

    try:
        document = xmltodict.parse(text, force_list=("msg",))
    except ExpatError:
        return []

    response = document.get("response") or {}
    if not isinstance(response, dict):
        return []

    return _parse_messages(response.get("messages"))
