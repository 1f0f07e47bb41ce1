"""
Async Splunk SDK

An asyncio client for the Splunk REST API, with a Model Context Protocol
server built on top of it
"""

__version__ = "1.0.0"

from .applications import Application, ApplicationCollection
from .config import SplunkConfig
from .configuration import Configuration, ConfigurationCollection, ConfigurationStanza
from .context import Context, Namespace, ResourceName, Response
from .exceptions import (
    AuthenticationFailureError,
    BadRequestError,
    InternalServerError,
    InvalidDataError,
    JobFailedError,
    JobTimeoutError,
    MissingArgumentError,
    RecordingOutOfSyncError,
    RequestError,
    ResourceNotFoundError,
    ServiceUnavailableError,
    SplunkError,
    UnauthorizedError,
)
from .indexes import Index, IndexCollection
from .jobs import DispatchState, Job, JobArgs, JobCollection, SearchResultArgs
from .saved_searches import SavedSearch, SavedSearchCollection
from .search_results import SearchPreview, SearchResult, SearchResultStream, SearchPreviewStream
from .server import Server, ServerInfo
from .service import Service
from .storage_passwords import StoragePassword, StoragePasswordCollection

__all__ = [
    "Application",
    "ApplicationCollection",
    "AuthenticationFailureError",
    "BadRequestError",
    "Configuration",
    "ConfigurationCollection",
    "ConfigurationStanza",
    "Context",
    "DispatchState",
    "Index",
    "IndexCollection",
    "InternalServerError",
    "InvalidDataError",
    "Job",
    "JobArgs",
    "JobCollection",
    "JobFailedError",
    "JobTimeoutError",
    "MissingArgumentError",
    "Namespace",
    "RecordingOutOfSyncError",
    "RequestError",
    "ResourceName",
    "ResourceNotFoundError",
    "Response",
    "SavedSearch",
    "SavedSearchCollection",
    "SearchPreview",
    "SearchPreviewStream",
    "SearchResult",
    "SearchResultArgs",
    "SearchResultStream",
    "Server",
    "ServerInfo",
    "Service",
    "ServiceUnavailableError",
    "SplunkConfig",
    "SplunkError",
    "StoragePassword",
    "StoragePasswordCollection",
    "UnauthorizedError",
]
