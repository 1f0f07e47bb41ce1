"""
Saved searches (saved/searches)
"""

import logging
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional

from .arguments import Args, Argument, Param, SortDirection, SortMode, format_value
from .atom import parse_feed, read_response_element
from .context import ResourceName
from .converters import to_bool, to_int, to_list, to_str, to_unix_datetime
from .entity import Entity, EntityCollection
from .exceptions import InvalidDataError
from .jobs import Job, JobCollection

logger = logging.getLogger(__name__)

SCHEDULE_TIME_FORMAT = "%Y-%m-%d %H:%M:%SZ"


class SavedSearchAttributes(Args):
    """Settable properties of a saved search"""
    alert_comparator: Annotated[Optional[str], Param("alert_comparator")] = None
    alert_condition: Annotated[Optional[str], Param("alert_condition")] = None
    alert_threshold: Annotated[Optional[str], Param("alert_threshold")] = None
    alert_type: Annotated[Optional[str], Param("alert_type")] = None
    actions: Annotated[Optional[str], Param("actions")] = None
    cron_schedule: Annotated[Optional[str], Param("cron_schedule")] = None
    description: Annotated[Optional[str], Param("description")] = None
    disabled: Annotated[Optional[bool], Param("disabled")] = None
    is_scheduled: Annotated[Optional[bool], Param("is_scheduled")] = None
    is_visible: Annotated[Optional[bool], Param("is_visible")] = None
    max_concurrent: Annotated[Optional[int], Param("max_concurrent")] = None
    realtime_schedule: Annotated[Optional[bool], Param("realtime_schedule")] = None
    restart_on_searchpeer_add: Annotated[Optional[bool], Param("restart_on_searchpeer_add")] = None
    run_on_startup: Annotated[Optional[bool], Param("run_on_startup")] = None


class SavedSearchDispatchArgs(Args):
    """Dispatch-time overrides; also accepted when creating or updating"""
    buckets: Annotated[Optional[int], Param("dispatch.buckets")] = None
    earliest_time: Annotated[Optional[str], Param("dispatch.earliest_time")] = None
    latest_time: Annotated[Optional[str], Param("dispatch.latest_time")] = None
    lookups: Annotated[Optional[bool], Param("dispatch.lookups")] = None
    max_count: Annotated[Optional[int], Param("dispatch.max_count")] = None
    max_time: Annotated[Optional[int], Param("dispatch.max_time")] = None
    now: Annotated[Optional[str], Param("dispatch.now")] = None
    reduce_frequency: Annotated[Optional[int], Param("dispatch.reduce_freq")] = None
    spawn_process: Annotated[Optional[bool], Param("dispatch.spawn_process")] = None
    time_format: Annotated[Optional[str], Param("dispatch.time_format")] = None
    ttl: Annotated[Optional[str], Param("dispatch.ttl")] = None
    force_dispatch: Annotated[bool, Param("force_dispatch")] = False
    trigger_actions: Annotated[bool, Param("trigger_actions")] = False


class SavedSearchFilter(Args):
    count: Annotated[int, Param("count")] = 30
    earliest_time: Annotated[Optional[str], Param("earliest_time")] = None
    latest_time: Annotated[Optional[str], Param("latest_time")] = None
    list_default_action_args: Annotated[bool, Param("listDefaultActionArgs")] = False
    offset: Annotated[int, Param("offset")] = 0
    search: Annotated[Optional[str], Param("search")] = None
    sort_dir: Annotated[SortDirection, Param("sort_dir")] = SortDirection.ASCENDING
    sort_key: Annotated[str, Param("sort_key")] = "name"
    sort_mode: Annotated[SortMode, Param("sort_mode")] = SortMode.AUTOMATIC


class SavedSearchTemplateArgs(dict):
    """
    Values substituted into $args.<name>$ tokens of a saved search.

        SavedSearchTemplateArgs(index="main").arguments()
        # [Argument("args.index", "main")]
    """

    def arguments(self) -> List[Argument]:
        return [
            Argument(f"args.{name}", format_value(value))
            for name, value in self.items()
            if value is not None
        ]


class SavedSearch(Entity):
    """A saved search or report"""

    def _group(self, prefix: str) -> Dict[str, Any]:
        prefix = f"{prefix}."
        return {
            key[len(prefix):]: value
            for key, value in self.content.items()
            if key.startswith(prefix)
        }

    @property
    def actions(self) -> Dict[str, Any]:
        return self._group("action")

    @property
    def alert(self) -> Dict[str, Any]:
        return self._group("alert")

    @property
    def auto_summarize(self) -> Dict[str, Any]:
        return self._group("auto_summarize")

    @property
    def dispatch_settings(self) -> Dict[str, Any]:
        return self._group("dispatch")

    @property
    def display(self) -> Dict[str, Any]:
        return self._group("display")

    @property
    def request(self) -> Dict[str, Any]:
        return self._group("request")

    @property
    def cron_schedule(self) -> Optional[str]:
        return self._get("cron_schedule", to_str)

    @property
    def description(self) -> Optional[str]:
        return self._get("description", to_str)

    @property
    def is_disabled(self) -> bool:
        return self._get("disabled", to_bool, False)

    @property
    def is_scheduled(self) -> bool:
        return self._get("is_scheduled", to_bool, False)

    @property
    def is_visible(self) -> bool:
        return self._get("is_visible", to_bool, False)

    @property
    def max_concurrent(self) -> int:
        return self._get("max_concurrent", to_int, 0)

    @property
    def next_scheduled_time(self) -> Optional[str]:
        # Reported in server local time with a zone abbreviation, e.g. 2024-01-15 11:00:00 PST
        return self._get("next_scheduled_time", to_str)

    @property
    def qualified_search(self) -> Optional[str]:
        return self._get("qualifiedSearch", to_str)

    @property
    def realtime_schedule(self) -> bool:
        return self._get("realtime_schedule", to_bool, False)

    @property
    def restart_on_searchpeer_add(self) -> bool:
        return self._get("restart_on_searchpeer_add", to_bool, False)

    @property
    def run_on_startup(self) -> bool:
        return self._get("run_on_startup", to_bool, False)

    @property
    def scheduled_times(self) -> List[datetime]:
        return self._get("scheduled_times", to_list(to_unix_datetime), [])

    @property
    def search(self) -> Optional[str]:
        return self._get("search", to_str)

    async def dispatch(
        self,
        dispatch_args: Optional[SavedSearchDispatchArgs] = None,
        template_args: Optional[SavedSearchTemplateArgs] = None,
    ) -> Job:
        """Run the saved search now and return its job once running"""
        resource_name = ResourceName(self.resource_name, "dispatch")
        response = await self.context.post(self.namespace, resource_name, dispatch_args, template_args)
        response.ensure_status(201)

        sid = read_response_element(response.text, "sid")
        if not sid:
            raise InvalidDataError(f"Saved search {self.name} dispatched without a sid")

        logger.info(f"Dispatched saved search {self.name}: {sid}")

        job = Job(self.context, self.namespace, ResourceName(JobCollection.collection_name, sid))
        await job.get()
        return job

    async def get(self, criteria: Optional[SavedSearchFilter] = None) -> None:
        response = await self.context.get(self.namespace, self.resource_name, criteria)
        response.ensure_status(200)
        self.reconstruct_snapshot(response)

    async def get_history(self) -> JobCollection:
        """Jobs previously run for this saved search"""
        resource_name = ResourceName(self.resource_name, "history")
        response = await self.context.get(self.namespace, resource_name)
        response.ensure_status(200)

        return JobCollection(self.context, self.namespace, resource_name, parse_feed(response.text))

    async def get_scheduled_times(self, earliest_time: str, latest_time: str) -> List[datetime]:
        resource_name = ResourceName(self.resource_name, "scheduled_times")
        response = await self.context.get(
            self.namespace,
            resource_name,
            {"earliest_time": earliest_time, "latest_time": latest_time},
        )
        response.ensure_status(200)
        self.reconstruct_snapshot(response)
        return self.scheduled_times

    async def schedule(self, schedule_time: Optional[datetime] = None) -> None:
        """Reschedule the next run, or let the scheduler pick it when no time is given"""
        args = None
        if schedule_time is not None:
            if schedule_time.tzinfo is not None:
                schedule_time = schedule_time.astimezone(timezone.utc)
            args = {"schedule_time": schedule_time.strftime(SCHEDULE_TIME_FORMAT)}

        response = await self.context.post(self.namespace, ResourceName(self.resource_name, "reschedule"), args)
        response.ensure_status(200)

    async def update(
        self,
        search: Optional[str] = None,
        attributes: Optional[SavedSearchAttributes] = None,
        dispatch_args: Optional[SavedSearchDispatchArgs] = None,
        template_args: Optional[SavedSearchTemplateArgs] = None,
    ) -> bool:
        return await super().update({"search": search}, attributes, dispatch_args, template_args)


class SavedSearchCollection(EntityCollection[SavedSearch]):
    """Saved searches visible in the collection's namespace"""

    item_class = SavedSearch
    collection_name = ResourceName("saved", "searches")

    async def create(
        self,
        name: str,
        search: str,
        attributes: Optional[SavedSearchAttributes] = None,
        dispatch_args: Optional[SavedSearchDispatchArgs] = None,
        template_args: Optional[SavedSearchTemplateArgs] = None,
    ) -> SavedSearch:
        return await super().create({"name": name, "search": search}, attributes, dispatch_args, template_args)
