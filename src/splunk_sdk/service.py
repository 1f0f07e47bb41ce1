"""
Splunk service

A Service bundles a Context and a Namespace and exposes the collections and
search operations of one Splunk server.
"""

import logging
import time
from typing import Any, Dict, Optional

from .applications import ApplicationCollection
from .atom import read_response_element
from .config import SplunkConfig
from .configuration import ConfigurationCollection
from .context import Context, Namespace, ResourceName
from .exceptions import AuthenticationFailureError
from .indexes import IndexCollection
from .jobs import DispatchState, ExecutionMode, Job, JobArgs, JobCollection, SearchExportArgs, SearchResultArgs
from .saved_searches import SavedSearchCollection, SavedSearchDispatchArgs, SavedSearchTemplateArgs
from .search_results import SearchPreviewStream, SearchResultStream
from .server import Server
from .storage_passwords import StoragePasswordCollection
from .transmitter import Transmitter

logger = logging.getLogger(__name__)


class Service:
    """Async Splunk REST API service"""

    login_resource = ResourceName("auth", "login")
    tokens_resource = ResourceName("authentication", "httpauth-tokens")
    export_resource = ResourceName("search", "jobs", "export")

    def __init__(self, context: Context, namespace: Optional[Namespace] = None):
        self.context = context
        self.namespace = namespace or Namespace()
        self.config: Optional[SplunkConfig] = None

        self.applications = ApplicationCollection(context, self.namespace)
        self.configurations = ConfigurationCollection(context, self.namespace)
        self.indexes = IndexCollection(context, self.namespace)
        self.jobs = JobCollection(context, self.namespace)
        self.saved_searches = SavedSearchCollection(context, self.namespace)
        self.storage_passwords = StoragePasswordCollection(context, self.namespace)
        self.server = Server(context, self.namespace)
        self.transmitter = Transmitter(context, self.namespace)

    @classmethod
    def from_config(cls, config: SplunkConfig) -> "Service":
        service = cls(Context.from_config(config), config.namespace)
        service.config = config
        return service

    def __repr__(self) -> str:
        return f"Service({self.context}/{self.namespace})"

    async def __aenter__(self) -> "Service":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def session_key(self) -> Optional[str]:
        return self.context.session_key

    async def connect(self) -> None:
        """Authenticate with the credentials of the service configuration"""
        config = self.config
        if config is None:
            raise ValueError("Service has no configuration to connect with")

        if config.token:
            # Tokens need no log on; a server info request checks them
            self.context.token = config.token
            await self.server.get_info()
            logger.info("Token authentication successful")
        elif config.username and config.password:
            await self.log_on(config.username, config.password)
        elif config.session_key:
            self.context.session_key = config.session_key
            logger.info("Using preset session key")
        else:
            raise ValueError("No authentication method provided. Use either token or username/password.")

    async def log_on(self, username: str, password: str) -> None:
        """Log on and keep the session key for subsequent requests"""
        response = await self.context.post(
            Namespace(), self.login_resource, {"username": username, "password": password}
        )
        response.ensure_status(200)

        session_key = read_response_element(response.text, "sessionKey")
        if not session_key:
            raise AuthenticationFailureError(response.status, "No session key in login response")

        self.context.session_key = session_key
        logger.info(f"Logged on to {self.context} as {username}")

    async def log_off(self) -> None:
        """Invalidate the session key"""
        if not self.context.session_key:
            return

        response = await self.context.delete(Namespace(), ResourceName(self.tokens_resource, self.context.session_key))
        response.ensure_status(200)

        self.context.session_key = None
        self.context.cookies.clear()
        logger.info(f"Logged off from {self.context}")

    async def close(self) -> None:
        await self.context.close()

    # Searches

    async def create_job(self, search: str, args: Optional[JobArgs] = None) -> Job:
        return await self.jobs.create(search, args)

    async def dispatch_saved_search(
        self,
        name: str,
        dispatch_args: Optional[SavedSearchDispatchArgs] = None,
        template_args: Optional[SavedSearchTemplateArgs] = None,
    ) -> Job:
        saved_search = await self.saved_searches.get(name)
        return await saved_search.dispatch(dispatch_args, template_args)

    async def search_oneshot(self, search: str, args: Optional[JobArgs] = None) -> SearchResultStream:
        """Run a search to completion in a single request"""
        args = (args or JobArgs()).model_copy(update={"execution_mode": ExecutionMode.ONESHOT})

        response = await self.context.post(self.namespace, self.jobs.collection_name, {"search": search}, args)
        return SearchResultStream.from_response(response)

    async def export_search_results(self, search: str, args: Optional[SearchExportArgs] = None) -> SearchResultStream:
        response = await self.context.post(
            self.namespace, self.export_resource, {"search": search, "preview": False}, args
        )
        return SearchResultStream.from_response(response)

    async def export_search_previews(self, search: str, args: Optional[SearchExportArgs] = None) -> SearchPreviewStream:
        response = await self.context.post(
            self.namespace, self.export_resource, {"search": search, "preview": True}, args
        )
        return SearchPreviewStream.from_response(response)

    async def search(
        self,
        query: str,
        earliest_time: str = "-24h@h",
        latest_time: str = "now",
        max_count: int = 100,
        timeout: int = 60
    ) -> Dict[str, Any]:
        """Execute a search query and collect its results"""
        start_time = time.time()

        job = await self.create_job(
            query,
            JobArgs(earliest_time=earliest_time, latest_time=latest_time, max_count=max_count),
        )

        try:
            await job.get(DispatchState.DONE, timeout=timeout, stop_when_queued=False)
            stream = await job.get_search_results(SearchResultArgs(count=max_count))
            results = [result.to_dict() for result in stream]
        finally:
            # Clean up search job
            await job.remove()

        return {
            "sid": job.sid,
            "results": results,
            "messages": [str(message) for message in stream.messages],
            "search_time": time.time() - start_time,
        }
