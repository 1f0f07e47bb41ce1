"""
Search jobs (search/jobs)

A Job is polled until it reaches a dispatch state: each GET that finds the
job short of the requested state is followed by a sleep that grows by half
of itself, until the timeout expires.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum, IntEnum
from typing import Annotated, Any, Dict, List, Optional, Union

from .arguments import Args, Param, SortDirection, SortMode
from .atom import read_response_element
from .context import Response, ResourceName
from .converters import to_bool, to_datetime, to_enum, to_float, to_int, to_list, to_str
from .entity import Entity, EntityCollection
from .exceptions import InvalidDataError, JobFailedError, JobTimeoutError
from .search_results import SearchResultStream

logger = logging.getLogger(__name__)


class DispatchState(IntEnum):
    """Lifecycle stage of a search job, in dispatch order"""
    NONE = 0
    QUEUED = 1
    PARSING = 2
    RUNNING = 3
    PAUSED = 4
    FINALIZING = 5
    FAILED = 6
    DONE = 7

    @classmethod
    def from_text(cls, value: Any) -> "DispatchState":
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise InvalidDataError(f"Unknown dispatch state: {value!r}") from None


class ExecutionMode(str, Enum):
    NORMAL = "normal"
    BLOCKING = "blocking"
    ONESHOT = "oneshot"


class SearchMode(str, Enum):
    NORMAL = "normal"
    REALTIME = "realtime"


class OutputMode(str, Enum):
    ATOM = "atom"
    CSV = "csv"
    JSON = "json"
    JSON_COLUMNS = "json_cols"
    JSON_ROWS = "json_rows"
    RAW = "raw"
    XML = "xml"


class TruncationMode(str, Enum):
    ABSTRACT = "abstract"
    TRUNCATE = "truncate"


class JobArgs(Args):
    """Arguments of a new search job; the search itself is passed separately"""
    auto_cancel: Annotated[Optional[int], Param("auto_cancel")] = None
    auto_finalize_event_count: Annotated[Optional[int], Param("auto_finalize_ec")] = None
    auto_pause: Annotated[Optional[int], Param("auto_pause")] = None
    earliest_time: Annotated[Optional[str], Param("earliest_time")] = None
    enable_lookups: Annotated[bool, Param("enable_lookups")] = True
    execution_mode: Annotated[ExecutionMode, Param("exec_mode")] = ExecutionMode.NORMAL
    force_bundle_replication: Annotated[bool, Param("force_bundle_replication")] = False
    id: Annotated[Optional[str], Param("id")] = None
    index_earliest: Annotated[Optional[str], Param("index_earliest")] = None
    index_latest: Annotated[Optional[str], Param("index_latest")] = None
    latest_time: Annotated[Optional[str], Param("latest_time")] = None
    max_count: Annotated[int, Param("max_count")] = 10000
    max_time: Annotated[int, Param("max_time")] = 0
    namespace: Annotated[Optional[str], Param("namespace")] = None
    now: Annotated[Optional[str], Param("now")] = None
    reduce_frequency: Annotated[int, Param("reduce_freq")] = 0
    reload_macros: Annotated[bool, Param("reload_macros")] = True
    remote_server_list: Annotated[Optional[str], Param("remote_server_list")] = None
    required_field_list: Annotated[List[str], Param("rf")] = []
    search_mode: Annotated[SearchMode, Param("search_mode")] = SearchMode.NORMAL
    spawn_process: Annotated[bool, Param("spawn_process")] = True
    status_buckets: Annotated[int, Param("status_buckets")] = 0
    sync_bundle_replication: Annotated[bool, Param("sync_bundle_replication")] = False
    time_format: Annotated[Optional[str], Param("time_format")] = None
    timeout: Annotated[int, Param("timeout")] = 86400


class SearchExportArgs(Args):
    """Arguments of search/jobs/export besides the search and preview flag"""
    auto_cancel: Annotated[Optional[int], Param("auto_cancel")] = None
    earliest_time: Annotated[Optional[str], Param("earliest_time")] = None
    enable_lookups: Annotated[bool, Param("enable_lookups")] = True
    latest_time: Annotated[Optional[str], Param("latest_time")] = None
    max_time: Annotated[int, Param("max_time")] = 0
    now: Annotated[Optional[str], Param("now")] = None
    search_mode: Annotated[SearchMode, Param("search_mode")] = SearchMode.NORMAL
    time_format: Annotated[Optional[str], Param("time_format")] = None
    truncation_mode: Annotated[TruncationMode, Param("truncation_mode")] = TruncationMode.ABSTRACT


class JobFilter(Args):
    count: Annotated[int, Param("count")] = 30
    offset: Annotated[int, Param("offset")] = 0
    search: Annotated[Optional[str], Param("search")] = None
    sort_dir: Annotated[SortDirection, Param("sort_dir")] = SortDirection.ASCENDING
    sort_key: Annotated[Optional[str], Param("sort_key")] = None
    sort_mode: Annotated[SortMode, Param("sort_mode")] = SortMode.AUTOMATIC


class SearchResultArgs(Args):
    count: Annotated[int, Param("count")] = 100
    field_list: Annotated[List[str], Param("f")] = []
    offset: Annotated[int, Param("offset")] = 0
    search: Annotated[Optional[str], Param("search")] = None


class SearchEventArgs(Args):
    count: Annotated[int, Param("count")] = 100
    earliest_time: Annotated[Optional[str], Param("earliest_time")] = None
    field_list: Annotated[List[str], Param("f")] = []
    latest_time: Annotated[Optional[str], Param("latest_time")] = None
    max_lines: Annotated[int, Param("max_lines")] = 0
    offset: Annotated[int, Param("offset")] = 0
    search: Annotated[Optional[str], Param("search")] = None
    segmentation: Annotated[str, Param("segmentation")] = "raw"
    time_format: Annotated[Optional[str], Param("time_format")] = None
    truncation_mode: Annotated[TruncationMode, Param("truncation_mode")] = TruncationMode.ABSTRACT


class Job(Entity):
    """A search job"""

    @property
    def sid(self) -> str:
        return self._get("sid", to_str) or self.name

    @property
    def search(self) -> Optional[str]:
        return self.title

    @property
    def dispatch_state(self) -> DispatchState:
        return self._get("dispatchState", DispatchState.from_text, DispatchState.NONE)

    @property
    def done_progress(self) -> float:
        return self._get("doneProgress", to_float, 0.0)

    @property
    def cursor_time(self) -> Optional[datetime]:
        return self._get("cursorTime", to_datetime)

    @property
    def disk_usage(self) -> int:
        return self._get("diskUsage", to_int, 0)

    @property
    def drop_count(self) -> int:
        return self._get("dropCount", to_int, 0)

    @property
    def earliest_time(self) -> Optional[datetime]:
        return self._get("earliestTime", to_datetime)

    @property
    def latest_time(self) -> Optional[datetime]:
        return self._get("latestTime", to_datetime)

    @property
    def event_available_count(self) -> int:
        return self._get("eventAvailableCount", to_int, 0)

    @property
    def event_count(self) -> int:
        return self._get("eventCount", to_int, 0)

    @property
    def event_field_count(self) -> int:
        return self._get("eventFieldCount", to_int, 0)

    @property
    def event_search(self) -> Optional[str]:
        return self._get("eventSearch", to_str)

    @property
    def event_sorting(self) -> Optional[SortDirection]:
        return self._get("eventSorting", to_enum(SortDirection))

    @property
    def is_done(self) -> bool:
        return self._get("isDone", to_bool, False)

    @property
    def is_failed(self) -> bool:
        return self._get("isFailed", to_bool, False)

    @property
    def is_finalized(self) -> bool:
        return self._get("isFinalized", to_bool, False)

    @property
    def is_paused(self) -> bool:
        return self._get("isPaused", to_bool, False)

    @property
    def is_preview_enabled(self) -> bool:
        return self._get("isPreviewEnabled", to_bool, False)

    @property
    def is_realtime_search(self) -> bool:
        return self._get("isRealTimeSearch", to_bool, False)

    @property
    def is_saved(self) -> bool:
        return self._get("isSaved", to_bool, False)

    @property
    def is_saved_search(self) -> bool:
        return self._get("isSavedSearch", to_bool, False)

    @property
    def is_zombie(self) -> bool:
        return self._get("isZombie", to_bool, False)

    @property
    def keywords(self) -> Optional[str]:
        return self._get("keywords", to_str)

    @property
    def label(self) -> Optional[str]:
        return self._get("label", to_str)

    @property
    def priority(self) -> int:
        return self._get("priority", to_int, 0)

    @property
    def report_search(self) -> Optional[str]:
        return self._get("reportSearch", to_str)

    @property
    def result_count(self) -> int:
        return self._get("resultCount", to_int, 0)

    @property
    def result_preview_count(self) -> int:
        return self._get("resultPreviewCount", to_int, 0)

    @property
    def run_duration(self) -> float:
        return self._get("runDuration", to_float, 0.0)

    @property
    def scan_count(self) -> int:
        return self._get("scanCount", to_int, 0)

    @property
    def search_providers(self) -> List[str]:
        return self._get("searchProviders", to_list(to_str), [])

    @property
    def status_buckets(self) -> int:
        return self._get("statusBuckets", to_int, 0)

    @property
    def ttl(self) -> int:
        return self._get("ttl", to_int, 0)

    @property
    def messages(self) -> Dict[str, Any]:
        return self.content.get("messages") or {}

    @property
    def performance(self) -> Dict[str, Any]:
        return self.content.get("performance") or {}

    @property
    def request(self) -> Dict[str, Any]:
        return self.content.get("request") or {}

    @property
    def runtime(self) -> Dict[str, Any]:
        return self.content.get("runtime") or {}

    # Polling

    async def get(
        self,
        dispatch_state: DispatchState = DispatchState.RUNNING,
        timeout: float = 30.0,
        retry_interval: float = 0.25,
        stop_when_queued: bool = True,
    ) -> None:
        """
        Refresh the snapshot until the job reaches a dispatch state.

        Polling stops once the job is at least at dispatch_state, is queued
        behind other searches (unless stop_when_queued is False), or has
        failed. Splunk answers 204 while a new job is not yet readable.

        Raises:
            JobTimeoutError: the job did not get there within timeout seconds
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            response = await self.context.get(self.namespace, self.resource_name)

            if response.status != 204:
                response.ensure_status(200)
                self.reconstruct_snapshot(response)

                state = self.dispatch_state
                if state >= dispatch_state or state == DispatchState.FAILED:
                    return
                if state == DispatchState.QUEUED and stop_when_queued:
                    return

            remaining = deadline - loop.time()
            if remaining <= 0:
                raise JobTimeoutError(
                    f"Search job {self.name} did not reach {dispatch_state.name} within {timeout} seconds"
                )

            await asyncio.sleep(min(retry_interval, remaining))
            retry_interval += retry_interval / 2

    async def transition(
        self,
        dispatch_state: DispatchState,
        timeout: float = 30.0,
        retry_interval: float = 0.25,
    ) -> None:
        """Poll only if the current snapshot is short of dispatch_state"""
        if self.entry is not None and self.dispatch_state >= dispatch_state:
            return
        await self.get(dispatch_state, timeout, retry_interval)

    # Results

    def _ensure_not_failed(self) -> None:
        if self.dispatch_state == DispatchState.FAILED:
            logger.error(f"Search job {self.sid} failed: {self.messages}")
            raise JobFailedError(self.sid, self.messages)

    async def _get_results(self, dispatch_state: DispatchState, endpoint: str, *argument_sets: Any) -> SearchResultStream:
        await self.transition(dispatch_state)
        self._ensure_not_failed()

        response = await self.context.get(self.namespace, ResourceName(self.resource_name, endpoint), *argument_sets)
        return SearchResultStream.from_response(response)

    async def get_search_results(self, args: Union[SearchResultArgs, int, None] = None) -> SearchResultStream:
        """Wait for the job to finish and read its results; count 0 reads all"""
        if not isinstance(args, SearchResultArgs):
            args = SearchResultArgs(count=args or 0)
        return await self._get_results(DispatchState.DONE, "results", args)

    async def get_search_events(self, args: Union[SearchEventArgs, int, None] = None) -> SearchResultStream:
        if not isinstance(args, SearchEventArgs):
            args = SearchEventArgs(count=args or 0)
        return await self._get_results(DispatchState.DONE, "events", args)

    async def get_search_preview(self, args: Union[SearchResultArgs, int, None] = None) -> SearchResultStream:
        if not isinstance(args, SearchResultArgs):
            args = SearchResultArgs(count=args or 0)
        return await self._get_results(DispatchState.RUNNING, "results_preview", args)

    async def get_search_response_message(
        self,
        args: Union[SearchResultArgs, int, None] = None,
        output_mode: OutputMode = OutputMode.XML,
    ) -> Response:
        """Read the raw results response in the requested output mode"""
        if not isinstance(args, SearchResultArgs):
            args = SearchResultArgs(count=args or 0)

        await self.transition(DispatchState.DONE)
        self._ensure_not_failed()

        resource_name = ResourceName(self.resource_name, "results")
        response = await self.context.get(self.namespace, resource_name, args, {"output_mode": output_mode})
        response.ensure_status(200, 204)
        return response

    # Control actions

    async def _control(self, action: str, **arguments: Any) -> None:
        await self.transition(DispatchState.RUNNING)

        response = await self.context.post(
            self.namespace,
            ResourceName(self.resource_name, "control"),
            {"action": action, **arguments},
        )
        response.ensure_status(200)
        logger.info(f"Search job {self.name}: {action}")

    async def cancel(self) -> None:
        await self._control("cancel")

    async def disable_preview(self) -> None:
        await self._control("disablepreview")

    async def enable_preview(self) -> None:
        await self._control("enablepreview")

    async def finalize(self) -> None:
        await self._control("finalize")

    async def pause(self) -> None:
        await self._control("pause")

    async def save(self) -> None:
        await self._control("save")

    async def set_priority(self, priority: int) -> None:
        await self._control("setpriority", priority=priority)

    async def set_ttl(self, ttl: int) -> None:
        await self._control("setttl", ttl=ttl)

    async def touch(self, ttl: int) -> None:
        await self._control("touch", ttl=ttl)

    async def unpause(self) -> None:
        await self._control("unpause")

    async def unsave(self) -> None:
        await self._control("unsave")


class JobCollection(EntityCollection[Job]):
    """Search jobs visible to the current user"""

    item_class = Job
    collection_name = ResourceName("search", "jobs")

    async def create(self, search: str, args: Optional[JobArgs] = None) -> Job:
        """Start a search job and wait until Splunk reports it running"""
        response = await self.context.post(self.namespace, self.collection_name, {"search": search}, args)
        response.ensure_status(201)

        sid = read_response_element(response.text, "sid")
        if not sid:
            raise InvalidDataError("Search job created without a sid")

        logger.info(f"Created search job: {sid}")

        job = Job(self.context, self.namespace, ResourceName(self.collection_name, sid))
        await job.get()
        return job
