"""
Splunk applications (apps/local)
"""

import logging
from typing import Annotated, Optional

from pydantic import BaseModel

from .arguments import Args, Param, SortDirection, SortMode
from .context import ResourceName
from .converters import to_bool, to_str
from .entity import Entity, EntityCollection

logger = logging.getLogger(__name__)


class ApplicationAttributes(Args):
    """Settable properties of an application"""
    author: Annotated[Optional[str], Param("author")] = None
    configured: Annotated[Optional[bool], Param("configured")] = None
    description: Annotated[Optional[str], Param("description")] = None
    label: Annotated[Optional[str], Param("label")] = None
    version: Annotated[Optional[str], Param("version")] = None
    visible: Annotated[Optional[bool], Param("visible")] = None


class ApplicationFilter(Args):
    count: Annotated[int, Param("count")] = 30
    offset: Annotated[int, Param("offset")] = 0
    refresh: Annotated[bool, Param("refresh")] = False
    search: Annotated[Optional[str], Param("search")] = None
    sort_dir: Annotated[SortDirection, Param("sort_dir")] = SortDirection.ASCENDING
    sort_mode: Annotated[SortMode, Param("sort_mode")] = SortMode.AUTOMATIC


class ApplicationCreationArgs(Args):
    explicit_appname: Annotated[str, Param("explicit_appname", required=True)] = ""
    filename: Annotated[Optional[bool], Param("filename", required=True)] = None
    name: Annotated[str, Param("name", required=True)] = ""
    template: Annotated[Optional[str], Param("template", emit_default=True)] = None
    update: Annotated[Optional[bool], Param("update")] = None


class ApplicationUpdateArgs(Args):
    check_for_updates: Annotated[bool, Param("check_for_updates", emit_default=True)] = False


class ApplicationArchiveInfo(BaseModel):
    """Location of an application package built by Splunk"""
    application_name: str
    path: str
    uri: str


class ApplicationUpdateInfo(BaseModel):
    """Update information Splunk collected from Splunkbase"""
    application_name: str
    update_checksum: Optional[str] = None
    update_checksum_type: Optional[str] = None
    update_homepage: Optional[str] = None
    update_name: Optional[str] = None
    update_size: Optional[int] = None
    update_uri: Optional[str] = None
    update_version: Optional[str] = None
    implicit_id_required: bool = False


class Application(Entity):
    """An installed Splunk app"""

    @property
    def author(self) -> Optional[str]:
        return self._get("author", to_str) or super().author

    @property
    def check_for_updates(self) -> bool:
        return self._get("check_for_updates", to_bool, False)

    @property
    def configured(self) -> bool:
        return self._get("configured", to_bool, False)

    @property
    def description(self) -> Optional[str]:
        return self._get("description", to_str)

    @property
    def disabled(self) -> bool:
        return self._get("disabled", to_bool, False)

    @property
    def label(self) -> Optional[str]:
        return self._get("label", to_str)

    @property
    def refresh(self) -> bool:
        return self._get("refresh", to_bool, False)

    @property
    def state_change_requires_restart(self) -> bool:
        return self._get("state_change_requires_restart", to_bool, False)

    @property
    def version(self) -> Optional[str]:
        return self._get("version", to_str)

    @property
    def visible(self) -> bool:
        return self._get("visible", to_bool, False)

    async def update(self, attributes: Optional[ApplicationAttributes] = None, check_for_updates: bool = False) -> bool:
        return await super().update(attributes, ApplicationUpdateArgs(check_for_updates=check_for_updates))

    async def package(self) -> ApplicationArchiveInfo:
        """Ask Splunk to package the app as a .spl archive"""
        package = Entity(self.context, self.namespace, ResourceName(self.resource_name, "package"))
        response = await self.context.post(package.namespace, package.resource_name)
        response.ensure_status(200)
        package.reconstruct_snapshot(response)

        content = package.content
        return ApplicationArchiveInfo(
            application_name=content.get("name") or self.name,
            path=content.get("path") or "",
            uri=content.get("url") or "",
        )

    async def get_update_info(self) -> ApplicationUpdateInfo:
        update = Entity(self.context, self.namespace, ResourceName(self.resource_name, "update"))
        await update.get()

        content = update.content
        size = content.get("update.size")
        return ApplicationUpdateInfo(
            application_name=self.name,
            update_checksum=content.get("update.checksum"),
            update_checksum_type=content.get("update.checksum.type"),
            update_homepage=content.get("update.homepage"),
            update_name=content.get("update.name"),
            update_size=int(size) if size else None,
            update_uri=content.get("update.appurl"),
            update_version=content.get("update.version"),
            implicit_id_required=to_bool(content.get("update.implicit_id_required") or False),
        )


class ApplicationCollection(EntityCollection[Application]):
    """Apps installed on the server"""

    item_class = Application
    collection_name = ResourceName("apps", "local")

    async def create(self, name: str, template: str, attributes: Optional[ApplicationAttributes] = None) -> Application:
        """Create an app from one of the server's templates"""
        args = ApplicationCreationArgs(explicit_appname=name, filename=False, name=name, template=template)
        return await super().create(args, attributes)

    async def install(self, path: str, name: Optional[str] = None, update: bool = False) -> Application:
        """Install an app from a package file or URL visible to the server"""
        args = ApplicationCreationArgs(explicit_appname=name or "", filename=True, name=path, update=update)
        application = await super().create(args)
        logger.info(f"Installed application {application.name} from {path}")
        return application
