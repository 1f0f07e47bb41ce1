"""
Pydantic models shared by the Splunk SDK and its tool server
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MessageType(str, Enum):
    """Severity of a message reported in a Splunk response"""
    DEBUG = "DEBUG"
    INFORMATION = "INFO"
    WARNING = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"


class Message(BaseModel):
    """A message from the <messages> block of a response"""
    type: MessageType
    text: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        return v.upper() if isinstance(v, str) else v

    def __str__(self) -> str:
        return f"{self.type.name.title()}: {self.text}"


class Pagination(BaseModel):
    """OpenSearch paging information of an Atom feed"""
    total_results: int = 0
    items_per_page: int = 0
    start_index: int = 0


class Permissions(BaseModel):
    """Read and write roles of an access control list"""
    read: List[str] = Field(default_factory=list)
    write: List[str] = Field(default_factory=list)

    @field_validator("read", "write", mode="before")
    @classmethod
    def empty_list(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class AccessControl(BaseModel):
    """The eai:acl block attached to every entity"""
    model_config = ConfigDict(extra="allow")

    app: Optional[str] = None
    owner: Optional[str] = None
    sharing: Optional[str] = None
    can_list: bool = False
    can_write: bool = False
    can_share_app: bool = False
    can_share_global: bool = False
    can_share_user: bool = False
    can_change_perms: bool = False
    modifiable: bool = False
    removable: bool = False
    perms: Optional[Permissions] = None


class SearchRequest(BaseModel):
    """Search request parameters"""
    query: str = Field(..., description="SPL (Search Processing Language) query")
    earliest_time: Optional[str] = Field(
        default="-24h@h",
        description="Earliest time for search (e.g., '-24h@h', '2024-01-01T00:00:00')"
    )
    latest_time: Optional[str] = Field(
        default="now",
        description="Latest time for search (e.g., 'now', '2024-01-01T23:59:59')"
    )
    max_count: Optional[int] = Field(
        default=100,
        description="Maximum number of results to return",
        ge=1,
        le=10000
    )
    timeout: Optional[int] = Field(
        default=60,
        description="Search timeout in seconds",
        ge=1,
        le=3600
    )

    @field_validator("query")
    @classmethod
    def validate_query(cls, v):
        if not v or not v.strip():
            raise ValueError("Query cannot be empty")
        return v.strip()


class IndexRequest(BaseModel):
    """Request to list indexes"""
    pattern: Optional[str] = Field(
        default=None,
        description="Pattern to filter index names (e.g., 'main*', '*security*')"
    )


class SavedSearchRequest(BaseModel):
    """Request for saved searches"""
    search_name: Optional[str] = Field(
        default=None,
        description="Name of specific saved search to retrieve"
    )
    owner: Optional[str] = Field(
        default=None,
        description="Owner of the saved search"
    )


class DispatchRequest(BaseModel):
    """Request to dispatch a saved search"""
    name: str = Field(..., description="Name of the saved search to dispatch")
    max_count: Optional[int] = Field(
        default=100,
        description="Maximum number of results to return",
        ge=1,
        le=10000
    )
    timeout: Optional[int] = Field(
        default=60,
        description="Seconds to wait for the dispatched job",
        ge=1,
        le=3600
    )


class AppRequest(BaseModel):
    """Request for listing applications"""
    visible_only: Optional[bool] = Field(
        default=True,
        description="Only return visible applications"
    )
