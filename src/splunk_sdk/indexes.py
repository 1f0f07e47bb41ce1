"""
Splunk indexes (data/indexes)
"""

import logging
from datetime import datetime
from typing import Annotated, Optional

from .arguments import Args, Param, SortDirection, SortMode
from .context import ResourceName
from .converters import to_bool, to_datetime, to_int, to_str
from .entity import Entity, EntityCollection

logger = logging.getLogger(__name__)


class IndexAttributes(Args):
    """Settable properties of an index"""
    block_sign_size: Annotated[Optional[int], Param("blockSignSize")] = None
    cold_to_frozen_dir: Annotated[Optional[str], Param("coldToFrozenDir")] = None
    cold_to_frozen_script: Annotated[Optional[str], Param("coldToFrozenScript")] = None
    compress_raw_data: Annotated[Optional[bool], Param("compressRawdata")] = None
    enable_online_bucket_repair: Annotated[Optional[bool], Param("enableOnlineBucketRepair")] = None
    frozen_time_period_in_secs: Annotated[Optional[int], Param("frozenTimePeriodInSecs")] = None
    max_bloom_backfill_bucket_age: Annotated[Optional[str], Param("maxBloomBackfillBucketAge")] = None
    max_concurrent_optimizes: Annotated[Optional[int], Param("maxConcurrentOptimizes")] = None
    max_data_size: Annotated[Optional[str], Param("maxDataSize")] = None
    max_hot_buckets: Annotated[Optional[int], Param("maxHotBuckets")] = None
    max_hot_idle_secs: Annotated[Optional[int], Param("maxHotIdleSecs")] = None
    max_hot_span_secs: Annotated[Optional[int], Param("maxHotSpanSecs")] = None
    max_mem_mb: Annotated[Optional[int], Param("maxMemMB")] = None
    max_meta_entries: Annotated[Optional[int], Param("maxMetaEntries")] = None
    max_total_data_size_mb: Annotated[Optional[int], Param("maxTotalDataSizeMB")] = None
    max_warm_db_count: Annotated[Optional[int], Param("maxWarmDBCount")] = None
    min_raw_file_sync_secs: Annotated[Optional[str], Param("minRawFileSyncSecs")] = None
    quarantine_future_secs: Annotated[Optional[int], Param("quarantineFutureSecs")] = None
    quarantine_past_secs: Annotated[Optional[int], Param("quarantinePastSecs")] = None
    raw_chunk_size_bytes: Annotated[Optional[int], Param("rawChunkSizeBytes")] = None
    rotate_period_in_secs: Annotated[Optional[int], Param("rotatePeriodInSecs")] = None
    service_meta_period: Annotated[Optional[int], Param("serviceMetaPeriod")] = None
    sync_meta: Annotated[Optional[bool], Param("syncMeta")] = None
    throttle_check_period: Annotated[Optional[int], Param("throttleCheckPeriod")] = None


class IndexFilter(Args):
    count: Annotated[int, Param("count")] = 30
    offset: Annotated[int, Param("offset")] = 0
    search: Annotated[Optional[str], Param("search")] = None
    sort_dir: Annotated[SortDirection, Param("sort_dir")] = SortDirection.ASCENDING
    sort_key: Annotated[str, Param("sort_key")] = "name"
    sort_mode: Annotated[SortMode, Param("sort_mode")] = SortMode.AUTOMATIC
    summarize: Annotated[bool, Param("summarize")] = False


class IndexCreationArgs(Args):
    name: Annotated[str, Param("name", required=True)]
    cold_path: Annotated[Optional[str], Param("coldPath")] = None
    home_path: Annotated[Optional[str], Param("homePath")] = None
    thawed_path: Annotated[Optional[str], Param("thawedPath")] = None


class Index(Entity):
    """A Splunk index"""

    @property
    def assure_utf8(self) -> bool:
        return self._get("assureUTF8", to_bool, False)

    @property
    def cold_path(self) -> Optional[str]:
        return self._get("coldPath", to_str)

    @property
    def cold_path_expanded(self) -> Optional[str]:
        return self._get("coldPath_expanded", to_str)

    @property
    def cold_to_frozen_dir(self) -> Optional[str]:
        return self._get("coldToFrozenDir", to_str)

    @property
    def compress_raw_data(self) -> bool:
        return self._get("compressRawdata", to_bool, False)

    @property
    def current_db_size_mb(self) -> int:
        return self._get("currentDBSizeMB", to_int, 0)

    @property
    def default_database(self) -> Optional[str]:
        return self._get("defaultDatabase", to_str)

    @property
    def disabled(self) -> bool:
        return self._get("disabled", to_bool, False)

    @property
    def enable_realtime_search(self) -> bool:
        return self._get("enableRealtimeSearch", to_bool, False)

    @property
    def frozen_time_period_in_secs(self) -> int:
        return self._get("frozenTimePeriodInSecs", to_int, 0)

    @property
    def home_path(self) -> Optional[str]:
        return self._get("homePath", to_str)

    @property
    def home_path_expanded(self) -> Optional[str]:
        return self._get("homePath_expanded", to_str)

    @property
    def is_internal(self) -> bool:
        return self._get("isInternal", to_bool, False)

    @property
    def is_ready(self) -> bool:
        return self._get("isReady", to_bool, False)

    @property
    def is_virtual(self) -> bool:
        return self._get("isVirtual", to_bool, False)

    @property
    def max_data_size(self) -> Optional[str]:
        return self._get("maxDataSize", to_str)

    @property
    def max_hot_buckets(self) -> int:
        return self._get("maxHotBuckets", to_int, 0)

    @property
    def max_time(self) -> Optional[datetime]:
        return self._get("maxTime", to_datetime)

    @property
    def max_total_data_size_mb(self) -> int:
        return self._get("maxTotalDataSizeMB", to_int, 0)

    @property
    def max_warm_db_count(self) -> int:
        return self._get("maxWarmDBCount", to_int, 0)

    @property
    def min_time(self) -> Optional[datetime]:
        return self._get("minTime", to_datetime)

    @property
    def num_hot_buckets(self) -> int:
        return self._get("numHotBuckets", to_int, 0)

    @property
    def num_warm_buckets(self) -> int:
        return self._get("numWarmBuckets", to_int, 0)

    @property
    def rep_factor(self) -> int:
        return self._get("repFactor", to_int, 0)

    @property
    def thawed_path(self) -> Optional[str]:
        return self._get("thawedPath", to_str)

    @property
    def thawed_path_expanded(self) -> Optional[str]:
        return self._get("thawedPath_expanded", to_str)

    @property
    def total_event_count(self) -> int:
        return self._get("totalEventCount", to_int, 0)

    async def disable(self) -> None:
        await self._post_action("disable")

    async def enable(self) -> None:
        await self._post_action("enable")

    async def update(self, attributes: IndexAttributes) -> bool:
        return await super().update(attributes)

    async def _post_action(self, action: str) -> None:
        response = await self.context.post(self.namespace, ResourceName(self.resource_name, action))
        response.ensure_status(200)
        logger.info(f"Index {self.name}: {action}")


class IndexCollection(EntityCollection[Index]):
    """Indexes defined on the server"""

    item_class = Index
    collection_name = ResourceName("data", "indexes")

    async def create(
        self,
        name: str,
        attributes: Optional[IndexAttributes] = None,
        cold_path: Optional[str] = None,
        home_path: Optional[str] = None,
        thawed_path: Optional[str] = None,
    ) -> Index:
        args = IndexCreationArgs(name=name, cold_path=cold_path, home_path=home_path, thawed_path=thawed_path)
        return await super().create(args, attributes)
