"""
Server information, settings and messages
"""

import logging
import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Tuple

from .arguments import Args, Param
from .context import Context, Namespace, ResourceName
from .converters import (
    to_bool,
    to_build_number,
    to_enum,
    to_guid,
    to_int,
    to_list,
    to_str,
    to_unix_datetime,
    to_version,
)
from .entity import Entity, EntityCollection

logger = logging.getLogger(__name__)


class ServerMessageSeverity(str, Enum):
    INFORMATION = "info"
    WARNING = "warn"
    ERROR = "error"


class ServerSettingValues(Args):
    """Settable server properties"""
    splunk_db: Annotated[Optional[str], Param("SPLUNK_DB")] = None
    enable_splunk_web_ssl: Annotated[Optional[bool], Param("enableSplunkWebSSL")] = None
    host: Annotated[Optional[str], Param("host")] = None
    http_port: Annotated[Optional[int], Param("httpport")] = None
    management_host_port: Annotated[Optional[int], Param("mgmtHostPort")] = None
    min_free_space: Annotated[Optional[int], Param("minFreeSpace")] = None
    pass4_symm_key: Annotated[Optional[str], Param("pass4SymmKey")] = None
    server_name: Annotated[Optional[str], Param("serverName")] = None
    session_timeout: Annotated[Optional[str], Param("sessionTimeout")] = None
    start_web_server: Annotated[Optional[bool], Param("startwebserver")] = None
    trusted_ip: Annotated[Optional[str], Param("trustedIP")] = None


class ServerInfo(Entity):
    """Read-only description of the splunkd instance (server/info)"""

    @property
    def active_license_group(self) -> Optional[str]:
        return self._get("activeLicenseGroup", to_str)

    @property
    def add_ons(self) -> Dict[str, Any]:
        return self.content.get("addOns") or {}

    @property
    def build(self) -> Optional[str]:
        return self._get("build", to_str)

    @property
    def build_number(self) -> Optional[int]:
        return self._get("build", to_build_number)

    @property
    def cpu_architecture(self) -> Optional[str]:
        return self._get("cpu_arch", to_str)

    @property
    def guid(self) -> Optional[uuid.UUID]:
        return self._get("guid", to_guid)

    @property
    def is_free(self) -> bool:
        return self._get("isFree", to_bool, False)

    @property
    def is_realtime_search_enabled(self) -> bool:
        return self._get("rtsearch_enabled", to_bool, False)

    @property
    def is_trial(self) -> bool:
        return self._get("isTrial", to_bool, False)

    @property
    def license_keys(self) -> List[str]:
        return self._get("licenseKeys", to_list(to_str), [])

    @property
    def license_labels(self) -> List[str]:
        return self._get("license_labels", to_list(to_str), [])

    @property
    def license_signature(self) -> Optional[str]:
        return self._get("licenseSignature", to_str)

    @property
    def license_state(self) -> Optional[str]:
        return self._get("licenseState", to_str)

    @property
    def master_guid(self) -> Optional[uuid.UUID]:
        return self._get("master_guid", to_guid)

    @property
    def mode(self) -> Optional[str]:
        return self._get("mode", to_str)

    @property
    def number_of_cores(self) -> int:
        return self._get("numberOfCores", to_int, 0)

    @property
    def os_build(self) -> Optional[str]:
        return self._get("os_build", to_str)

    @property
    def os_name(self) -> Optional[str]:
        return self._get("os_name", to_str)

    @property
    def os_version(self) -> Optional[str]:
        return self._get("os_version", to_str)

    @property
    def physical_memory_mb(self) -> int:
        return self._get("physicalMemoryMB", to_int, 0)

    @property
    def server_name(self) -> Optional[str]:
        return self._get("serverName", to_str)

    @property
    def startup_time(self) -> Optional[datetime]:
        return self._get("startup_time", to_unix_datetime)

    @property
    def version(self) -> Optional[Tuple[int, ...]]:
        return self._get("version", to_version)


class ServerSettings(Entity):
    """Server settings (server/settings/settings)"""

    @property
    def splunk_db(self) -> Optional[str]:
        return self._get("SPLUNK_DB", to_str)

    @property
    def splunk_home(self) -> Optional[str]:
        return self._get("SPLUNK_HOME", to_str)

    @property
    def enable_splunk_web_ssl(self) -> bool:
        return self._get("enableSplunkWebSSL", to_bool, False)

    @property
    def host(self) -> Optional[str]:
        return self._get("host", to_str)

    @property
    def http_port(self) -> int:
        return self._get("httpport", to_int, 0)

    @property
    def management_host_port(self) -> int:
        return self._get("mgmtHostPort", to_int, 0)

    @property
    def min_free_space(self) -> int:
        return self._get("minFreeSpace", to_int, 0)

    @property
    def server_name(self) -> Optional[str]:
        return self._get("serverName", to_str)

    @property
    def session_timeout(self) -> Optional[str]:
        return self._get("sessionTimeout", to_str)

    @property
    def start_web_server(self) -> bool:
        return self._get("startwebserver", to_bool, False)

    @property
    def trusted_ip(self) -> Optional[str]:
        return self._get("trustedIP", to_str)

    async def update(self, values: ServerSettingValues) -> bool:
        return await super().update(values)


class ServerMessage(Entity):
    """A message posted to the server's bulletin board"""

    @property
    def text(self) -> Optional[str]:
        return self._get("message", to_str)

    @property
    def severity(self) -> Optional[ServerMessageSeverity]:
        return self._get("severity", to_enum(ServerMessageSeverity))

    @property
    def time_created(self) -> Optional[datetime]:
        return self._get("timeCreated_epochSecs", to_unix_datetime)


class ServerMessageCollection(EntityCollection[ServerMessage]):
    item_class = ServerMessage
    collection_name = ResourceName("messages")

    async def create(self, name: str, severity: ServerMessageSeverity, text: str) -> ServerMessage:
        return await super().create({"name": name, "severity": severity, "value": text})


class Server:
    """Facade over the server endpoints of one splunkd"""

    info_resource = ResourceName("server", "info")
    settings_resource = ResourceName("server", "settings", "settings")

    def __init__(self, context: Context, namespace: Optional[Namespace] = None):
        self.context = context
        self.namespace = namespace or Namespace()
        self.messages = ServerMessageCollection(context, self.namespace)

    async def get_info(self) -> ServerInfo:
        info = ServerInfo(self.context, self.namespace, self.info_resource)
        await info.get()
        logger.debug(f"Server {info.server_name} version {info.build}")
        return info

    async def get_settings(self) -> ServerSettings:
        settings = ServerSettings(self.context, self.namespace, self.settings_resource)
        await settings.get()
        return settings

    async def update_settings(self, values: ServerSettingValues) -> ServerSettings:
        settings = ServerSettings(self.context, self.namespace, self.settings_resource)
        await settings.update(values)
        return settings
