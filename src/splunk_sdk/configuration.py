"""
Configuration files exposed through the properties endpoint

properties                       configuration files
properties/<file>                stanzas of one file
properties/<file>/<stanza>       settings of one stanza
properties/<file>/<stanza>/<key> plain-text value of one setting
"""

import logging
from typing import Any, Mapping, Optional, Tuple

from .atom import AtomEntry
from .context import Context, ResourceName
from .entity import Entity, EntityCollection, split_entry_id

logger = logging.getLogger(__name__)


class ConfigurationSetting(Entity):
    """A key of a configuration stanza"""

    @property
    def value(self) -> Optional[str]:
        content = self.entry.content if self.entry else None
        return content if isinstance(content, str) else None


class _NestedCollection(EntityCollection):
    """A collection that is itself an entry of its parent feed"""

    @classmethod
    def from_entry(cls, context: Context, entry: AtomEntry, generator_version: Optional[Tuple[int, ...]] = None):
        namespace, resource_name = split_entry_id(entry.id)
        return cls(context, namespace, resource_name)


class ConfigurationStanza(_NestedCollection):
    """A [stanza] of a configuration file"""

    item_class = ConfigurationSetting

    async def get_value(self, key: str) -> str:
        """Read one setting; Splunk answers with the bare value"""
        response = await self.context.get(self.namespace, ResourceName(self.resource_name, key))
        response.ensure_status(200)
        return response.text

    async def update(self, values: Mapping[str, Any]) -> bool:
        response = await self.context.post(self.namespace, self.resource_name, values)
        response.ensure_status(200)
        logger.info(f"Updated stanza {self.resource_name}")
        return True

    async def remove(self) -> None:
        # properties/<file>/<stanza> does not accept DELETE
        file_name, stanza_name = self.resource_name[-2], self.resource_name[-1]
        resource_name = ResourceName("configs", f"conf-{file_name}", stanza_name)

        response = await self.context.delete(self.namespace, resource_name)
        response.ensure_status(200)
        logger.info(f"Removed stanza [{stanza_name}] from {file_name}.conf")


class Configuration(_NestedCollection):
    """The stanzas of a configuration file"""

    item_class = ConfigurationStanza

    async def get(self, name: str) -> ConfigurationStanza:
        stanza = ConfigurationStanza(self.context, self.namespace, ResourceName(self.resource_name, name))
        await stanza.get_all()
        return stanza

    async def create_stanza(self, name: str) -> ConfigurationStanza:
        response = await self.context.post(self.namespace, self.resource_name, {"__stanza": name})
        response.ensure_status(201)
        logger.info(f"Created stanza [{name}] in {self.name}.conf")
        return await self.get(name)


class ConfigurationCollection(EntityCollection[Configuration]):
    """Configuration files known to the server"""

    item_class = Configuration
    collection_name = ResourceName("properties")

    async def get(self, name: str) -> Configuration:
        configuration = Configuration(self.context, self.namespace, ResourceName(self.resource_name, name))
        await configuration.get_all()
        return configuration

    async def create(self, name: str) -> Configuration:
        """Create an empty configuration file"""
        response = await self.context.post(self.namespace, self.resource_name, {"__conf": name})
        response.ensure_status(201)
        logger.info(f"Created configuration file {name}.conf")
        return await self.get(name)
