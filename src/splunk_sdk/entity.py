"""
Base classes for REST entities and entity collections

An Entity is a snapshot of one Atom entry bound to the context, namespace
and resource name it was read from. An EntityCollection is a snapshot of an
Atom feed whose entries are materialized as entities of its item_class.
"""

import logging
from datetime import datetime
from typing import Any, Callable, ClassVar, Dict, Generic, Iterator, List, Optional, Tuple, Type, TypeVar
from urllib.parse import unquote, urlsplit

from .atom import AtomEntry, AtomFeed, parse_document, parse_feed
from .context import Context, Namespace, ResourceName, Response
from .exceptions import InvalidDataError, ResourceNotFoundError
from .models import AccessControl, Message, Pagination

logger = logging.getLogger(__name__)

T = TypeVar("T")
E = TypeVar("E", bound="Entity")


def split_entry_id(entry_id: str) -> Tuple[Namespace, ResourceName]:
    """Derive the namespace and resource name from an entry id URL"""
    path = urlsplit(entry_id).path
    parts = [unquote(part) for part in path.split("/") if part]

    if parts and parts[0] == "services":
        return Namespace(), ResourceName(*parts[1:])

    if len(parts) >= 3 and parts[0] == "servicesNS":
        return Namespace(parts[1], parts[2]), ResourceName(*parts[3:])

    raise InvalidDataError(f"Unexpected entry id: {entry_id}")


class Entity:
    """A Splunk REST entity"""

    def __init__(
        self,
        context: Context,
        namespace: Optional[Namespace] = None,
        resource_name: Optional[ResourceName] = None,
        entry: Optional[AtomEntry] = None,
        generator_version: Optional[Tuple[int, ...]] = None,
    ):
        self.context = context
        self.namespace = namespace or Namespace()
        self.resource_name = resource_name or ResourceName()
        self.entry = entry
        self.generator_version = generator_version

    @classmethod
    def from_entry(cls, context: Context, entry: AtomEntry, generator_version: Optional[Tuple[int, ...]] = None):
        namespace, resource_name = split_entry_id(entry.id)
        return cls(context, namespace, resource_name, entry, generator_version)

    @classmethod
    def from_feed(cls, context: Context, feed: AtomFeed):
        if not feed.entries:
            raise InvalidDataError(f"Feed {feed.title!r} has no entries")
        return cls.from_entry(context, feed.entries[0], feed.generator_version)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.namespace}/{self.resource_name})"

    # Snapshot properties

    @property
    def name(self) -> str:
        return self.resource_name.title

    @property
    def id(self) -> Optional[str]:
        return self.entry.id if self.entry else None

    @property
    def title(self) -> Optional[str]:
        return self.entry.title if self.entry else None

    @property
    def author(self) -> Optional[str]:
        return self.entry.author if self.entry else None

    @property
    def published(self) -> Optional[datetime]:
        return self.entry.published if self.entry else None

    @property
    def updated(self) -> Optional[datetime]:
        return self.entry.updated if self.entry else None

    @property
    def links(self) -> Dict[str, str]:
        return self.entry.links if self.entry else {}

    @property
    def content(self) -> Dict[str, Any]:
        if self.entry is None or not isinstance(self.entry.content, dict):
            return {}
        return self.entry.content

    @property
    def eai_acl(self) -> Optional[AccessControl]:
        acl = self.content.get("eai:acl")
        return AccessControl.model_validate(acl) if acl else None

    def _get(self, key: str, converter: Callable[[Any], T], default: Optional[T] = None) -> Optional[T]:
        value = self.content.get(key)
        if value is None:
            return default
        return converter(value)

    # Operations

    def reconstruct_snapshot(self, response: Response) -> bool:
        """Replace the snapshot with the entry in a response body"""
        if not response.body.strip():
            return False

        document = parse_document(response.text)

        if isinstance(document, AtomFeed):
            if not document.entries:
                return False
            self.entry = document.entries[0]
            self.generator_version = document.generator_version
        else:
            self.entry = document

        return True

    async def get(self) -> None:
        """Refresh the snapshot"""
        response = await self.context.get(self.namespace, self.resource_name)
        response.ensure_status(200)
        self.reconstruct_snapshot(response)

    async def update(self, *argument_sets: Any) -> bool:
        """POST new attribute values; returns whether the snapshot changed"""
        response = await self.context.post(self.namespace, self.resource_name, *argument_sets)
        response.ensure_status(200)
        return self.reconstruct_snapshot(response)

    async def remove(self) -> None:
        response = await self.context.delete(self.namespace, self.resource_name)
        response.ensure_status(200)
        logger.info(f"Removed {self.resource_name}")


class EntityCollection(Generic[E]):
    """A feed of Splunk REST entities"""

    item_class: ClassVar[Type[Entity]] = Entity
    collection_name: ClassVar[ResourceName] = ResourceName()

    def __init__(
        self,
        context: Context,
        namespace: Optional[Namespace] = None,
        resource_name: Optional[ResourceName] = None,
        feed: Optional[AtomFeed] = None,
    ):
        self.context = context
        self.namespace = namespace or Namespace()
        self.resource_name = resource_name if resource_name is not None else self.collection_name
        self.feed = feed
        self._items: List[E] = []

        if feed is not None:
            self._load(feed)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.namespace}/{self.resource_name}, {len(self)} items)"

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[E]:
        return iter(self._items)

    def __getitem__(self, index: int) -> E:
        return self._items[index]

    @property
    def name(self) -> str:
        return self.resource_name.title

    @property
    def id(self) -> Optional[str]:
        return self.feed.id if self.feed else None

    @property
    def title(self) -> Optional[str]:
        return self.feed.title if self.feed else None

    @property
    def updated(self) -> Optional[datetime]:
        return self.feed.updated if self.feed else None

    @property
    def generator_version(self) -> Optional[Tuple[int, ...]]:
        return self.feed.generator_version if self.feed else None

    @property
    def links(self) -> Dict[str, str]:
        return self.feed.links if self.feed else {}

    @property
    def pagination(self) -> Pagination:
        return self.feed.pagination if self.feed else Pagination()

    @property
    def messages(self) -> List[Message]:
        return self.feed.messages if self.feed else []

    def _load(self, feed: AtomFeed) -> None:
        self.feed = feed
        self._items = [self._create_item(entry) for entry in feed.entries]

    def _create_item(self, entry: AtomEntry) -> E:
        generator_version = self.feed.generator_version if self.feed else None
        return self.item_class.from_entry(self.context, entry, generator_version)

    def reconstruct_snapshot(self, response: Response) -> None:
        self._load(parse_feed(response.text))

    async def get_all(self) -> None:
        """Read every entity in the collection"""
        await self.get_slice({"count": 0})

    async def get_slice(self, *argument_sets: Any) -> None:
        """Read the entities selected by filter arguments"""
        response = await self.context.get(self.namespace, self.resource_name, *argument_sets)
        response.ensure_status(200)
        self.reconstruct_snapshot(response)
        logger.debug(f"Read {len(self)} entities from {self.resource_name}")

    async def get(self, name: str) -> E:
        """Read a single entity by name"""
        item = self.item_class(self.context, self.namespace, ResourceName(self.resource_name, name))
        await item.get()
        return item

    async def get_or_none(self, name: str) -> Optional[E]:
        try:
            return await self.get(name)
        except ResourceNotFoundError:
            return None

    async def create(self, *argument_sets: Any) -> E:
        """POST a new entity to the collection"""
        response = await self.context.post(self.namespace, self.resource_name, *argument_sets)
        response.ensure_status(201)

        feed = parse_feed(response.text)
        if not feed.entries:
            raise InvalidDataError(f"No entity returned on create in {self.resource_name}")

        item = self.item_class.from_entry(self.context, feed.entries[0], feed.generator_version)
        logger.info(f"Created {item.resource_name}")
        return item
