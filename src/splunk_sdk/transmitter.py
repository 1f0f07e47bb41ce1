"""
Event submission through receivers/simple
"""

import logging
from typing import Optional

from .context import Context, Namespace, ResourceName
from .search_results import SearchResult, read_result

logger = logging.getLogger(__name__)


class Transmitter:
    """Sends raw events to an index over the management port"""

    resource_name = ResourceName("receivers", "simple")

    def __init__(self, context: Context, namespace: Optional[Namespace] = None):
        self.context = context
        self.namespace = namespace or Namespace()

    async def send(
        self,
        event: str,
        index: Optional[str] = None,
        host: Optional[str] = None,
        source: Optional[str] = None,
        sourcetype: Optional[str] = None,
    ) -> SearchResult:
        """Submit one event; returns the indexing summary Splunk reports"""
        args = {"index": index, "host": host, "source": source, "sourcetype": sourcetype}

        response = await self.context.post(self.namespace, self.resource_name, args, body=event)
        response.ensure_status(200)

        result = read_result(response.text)
        logger.debug(f"Sent {len(event)} characters to index {result.get('_index', index)}")
        return result
