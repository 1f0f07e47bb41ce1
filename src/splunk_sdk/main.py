#!/usr/bin/env python3
"""
Splunk MCP Server
A Model Context Protocol server built on the async Splunk SDK
"""

import asyncio
import fnmatch
import logging
from typing import Any, Dict, Optional

from fastmcp import FastMCP

from .config import SplunkConfig
from .context import Namespace
from .jobs import DispatchState, SearchResultArgs
from .models import AppRequest, DispatchRequest, IndexRequest, SavedSearchRequest, SearchRequest
from .saved_searches import SavedSearchCollection
from .service import Service

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize MCP server
mcp = FastMCP("Splunk MCP Server")

# Global Splunk service instance
service: Optional[Service] = None


def get_service() -> Service:
    if not service:
        raise RuntimeError("Splunk service not initialized. Please configure connection first.")
    return service


@mcp.tool()
async def search_splunk(request: SearchRequest) -> Dict[str, Any]:
    """
    Execute a Splunk search query using SPL (Search Processing Language).

    Args:
        request: Search parameters including query, time range, and limits

    Returns:
        Dictionary containing search results and metadata
    """
    splunk = get_service()

    try:
        logger.info(f"Executing Splunk search: {request.query}")

        results = await splunk.search(
            query=request.query,
            earliest_time=request.earliest_time,
            latest_time=request.latest_time,
            max_count=request.max_count,
            timeout=request.timeout
        )

        return {
            "status": "success",
            "query": request.query,
            "sid": results["sid"],
            "result_count": len(results["results"]),
            "results": results["results"],
            "messages": results["messages"],
            "search_time": results["search_time"],
            "earliest_time": request.earliest_time,
            "latest_time": request.latest_time
        }

    except Exception as e:
        logger.error(f"Search failed: {str(e)}")
        return {
            "status": "error",
            "error": str(e),
            "query": request.query
        }


@mcp.tool()
async def list_indexes(request: IndexRequest) -> Dict[str, Any]:
    """
    List available Splunk indexes.

    Args:
        request: Index listing parameters including optional pattern filter

    Returns:
        Dictionary containing list of indexes and metadata
    """
    splunk = get_service()

    try:
        logger.info("Listing Splunk indexes")

        await splunk.indexes.get_all()

        indexes = []
        for index in splunk.indexes:
            if request.pattern and not fnmatch.fnmatch(index.name, request.pattern):
                continue
            indexes.append({
                "name": index.name,
                "currentDBSizeMB": index.current_db_size_mb,
                "maxDataSize": index.max_data_size or "auto",
                "totalEventCount": index.total_event_count,
                "disabled": index.disabled
            })

        indexes.sort(key=lambda x: x["name"])

        return {
            "status": "success",
            "indexes": indexes,
            "count": len(indexes),
            "pattern": request.pattern
        }

    except Exception as e:
        logger.error(f"Failed to list indexes: {str(e)}")
        return {
            "status": "error",
            "error": str(e)
        }


@mcp.tool()
async def list_saved_searches(request: SavedSearchRequest) -> Dict[str, Any]:
    """
    List or retrieve saved searches from Splunk.

    Args:
        request: Saved search parameters

    Returns:
        Dictionary containing saved searches and metadata
    """
    splunk = get_service()

    try:
        logger.info("Listing saved searches")

        if request.owner:
            saved_searches = SavedSearchCollection(splunk.context, Namespace(request.owner, Namespace.WILDCARD))
        else:
            saved_searches = splunk.saved_searches
        await saved_searches.get_all()

        results = []
        for saved_search in saved_searches:
            # Substring match on the name, as in the Splunk UI filter
            if request.search_name and request.search_name.lower() not in saved_search.name.lower():
                continue
            acl = saved_search.eai_acl
            results.append({
                "name": saved_search.name,
                "search": saved_search.search or "",
                "description": saved_search.description or "",
                "owner": saved_search.author or "",
                "app": acl.app if acl and acl.app else "",
                "disabled": saved_search.is_disabled,
                "cron_schedule": saved_search.cron_schedule or "",
                "next_scheduled_time": saved_search.next_scheduled_time or ""
            })

        results.sort(key=lambda x: x["name"])

        return {
            "status": "success",
            "saved_searches": results,
            "count": len(results)
        }

    except Exception as e:
        logger.error(f"Failed to list saved searches: {str(e)}")
        return {
            "status": "error",
            "error": str(e)
        }


@mcp.tool()
async def dispatch_saved_search(request: DispatchRequest) -> Dict[str, Any]:
    """
    Run a saved search now and return its results.

    Args:
        request: Name of the saved search, result limit and timeout

    Returns:
        Dictionary containing the job id and its results
    """
    splunk = get_service()

    try:
        logger.info(f"Dispatching saved search: {request.name}")

        job = await splunk.dispatch_saved_search(request.name)
        await job.get(DispatchState.DONE, timeout=request.timeout, stop_when_queued=False)
        stream = await job.get_search_results(SearchResultArgs(count=request.max_count))
        results = [result.to_dict() for result in stream]

        return {
            "status": "success",
            "name": request.name,
            "sid": job.sid,
            "result_count": len(results),
            "results": results,
            "messages": [str(message) for message in stream.messages]
        }

    except Exception as e:
        logger.error(f"Failed to dispatch saved search: {str(e)}")
        return {
            "status": "error",
            "error": str(e),
            "name": request.name
        }


@mcp.tool()
async def list_apps(request: AppRequest) -> Dict[str, Any]:
    """
    List installed Splunk applications.

    Args:
        request: App listing parameters

    Returns:
        Dictionary containing list of applications
    """
    splunk = get_service()

    try:
        logger.info("Listing Splunk applications")

        await splunk.applications.get_all()

        apps = []
        for app in splunk.applications:
            if request.visible_only and not app.visible:
                continue
            apps.append({
                "name": app.name,
                "label": app.label or "",
                "description": app.description or "",
                "version": app.version or "",
                "author": app.author or "",
                "disabled": app.disabled,
                "configured": app.configured
            })

        apps.sort(key=lambda x: x["name"])

        return {
            "status": "success",
            "applications": apps,
            "count": len(apps)
        }

    except Exception as e:
        logger.error(f"Failed to list applications: {str(e)}")
        return {
            "status": "error",
            "error": str(e)
        }


@mcp.tool()
async def get_server_info() -> Dict[str, Any]:
    """
    Get Splunk server information and health status.

    Returns:
        Dictionary containing server information
    """
    splunk = get_service()

    try:
        logger.info("Getting Splunk server information")

        info = await splunk.server.get_info()
        startup_time = info.startup_time

        return {
            "status": "success",
            "server_info": {
                "version": ".".join(map(str, info.version)) if info.version else "",
                "build": info.build or "",
                "serverName": info.server_name or "",
                "guid": str(info.guid) if info.guid else "",
                "license_state": info.license_state or "",
                "mode": info.mode or "",
                "os_name": info.os_name or "",
                "numberOfCores": info.number_of_cores,
                "startup_time": startup_time.isoformat() if startup_time else ""
            }
        }

    except Exception as e:
        logger.error(f"Failed to get server info: {str(e)}")
        return {
            "status": "error",
            "error": str(e)
        }


async def initialize_splunk_service():
    """Initialize the Splunk service with configuration"""
    global service

    try:
        config = SplunkConfig.from_env()
        service = Service.from_config(config)
        await service.connect()
        logger.info("Splunk service initialized successfully")

    except Exception as e:
        logger.error(f"Failed to initialize Splunk service: {str(e)}")
        raise


async def main():
    """Main entry point for the MCP server"""
    try:
        await initialize_splunk_service()

        await mcp.run_async()

    except KeyboardInterrupt:
        logger.info("Shutting down MCP server...")
    except Exception as e:
        logger.error(f"Server error: {str(e)}")
        raise
    finally:
        if service:
            await service.close()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
