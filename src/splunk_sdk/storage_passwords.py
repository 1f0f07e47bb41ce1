"""
Credentials stored by Splunk (storage/passwords)
"""

import logging
from typing import Optional

from .context import ResourceName
from .converters import to_str
from .entity import Entity, EntityCollection

logger = logging.getLogger(__name__)


def _escape(value: str) -> str:
    return value.replace(":", "\\:")


def storage_password_name(username: str, realm: Optional[str] = None) -> str:
    """Entity name of a credential, 'realm:username:' with colons escaped"""
    return f"{_escape(realm or '')}:{_escape(username)}:"


class StoragePassword(Entity):
    """A stored credential"""

    @property
    def clear_password(self) -> Optional[str]:
        return self._get("clear_password", to_str)

    @property
    def encrypted_password(self) -> Optional[str]:
        return self._get("encr_password", to_str)

    @property
    def password(self) -> Optional[str]:
        return self._get("password", to_str)

    @property
    def realm(self) -> Optional[str]:
        return self._get("realm", to_str)

    @property
    def username(self) -> Optional[str]:
        return self._get("username", to_str)

    async def update(self, password: str) -> bool:
        return await super().update({"password": password})


class StoragePasswordCollection(EntityCollection[StoragePassword]):
    item_class = StoragePassword
    collection_name = ResourceName("storage", "passwords")

    async def create(self, password: str, username: str, realm: Optional[str] = None) -> StoragePassword:
        return await super().create({"name": username, "password": password, "realm": realm})

    async def get_by_user(self, username: str, realm: Optional[str] = None) -> StoragePassword:
        return await self.get(storage_password_name(username, realm))
