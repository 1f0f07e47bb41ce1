"""
Tests for search jobs and dispatch state polling
"""

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qsl

import pytest

from splunk_sdk.context import Namespace, ResourceName
from splunk_sdk.exceptions import JobFailedError, JobTimeoutError
from splunk_sdk.jobs import DispatchState, Job, JobArgs, JobCollection, OutputMode, SearchResultArgs

JOB_URL = "https://test-splunk.com:8089/services/search/jobs/1705312800.42"


def new_job(context) -> Job:
    return Job(context, Namespace(), ResourceName("search", "jobs", "1705312800.42"))


class TestDispatchState:

    def test_order(self):
        assert DispatchState.QUEUED < DispatchState.RUNNING < DispatchState.DONE
        assert DispatchState.FAILED < DispatchState.DONE

    def test_from_text(self):
        assert DispatchState.from_text("FINALIZING") is DispatchState.FINALIZING
        assert DispatchState.from_text("done") is DispatchState.DONE


class TestJobPolling:
    """Test cases for Job.get"""

    @pytest.mark.asyncio
    async def test_polls_until_state(self, context):
        context.respond(204)
        context.respond_with("job_queued.xml")
        context.respond_with("job_running.xml")
        context.respond_with("job_done.xml")
        job = new_job(context)

        with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
            await job.get(DispatchState.DONE, stop_when_queued=False)

        assert job.dispatch_state == DispatchState.DONE
        assert [request[1] for request in context.requests] == [JOB_URL] * 4
        assert [call.args[0] for call in sleep.await_args_list] == [0.25, 0.375, 0.5625]

    @pytest.mark.asyncio
    async def test_stops_when_queued(self, context):
        context.respond_with("job_queued.xml")
        job = new_job(context)

        await job.get(DispatchState.RUNNING, timeout=0.5)

        assert job.dispatch_state == DispatchState.QUEUED
        assert len(context.requests) == 1

    @pytest.mark.asyncio
    async def test_stops_at_later_state(self, context):
        context.respond_with("job_done.xml")
        job = new_job(context)

        await job.get(DispatchState.RUNNING)

        assert job.is_done is True
        assert len(context.requests) == 1

    @pytest.mark.asyncio
    async def test_stops_on_failure(self, context):
        context.respond_with("job_failed.xml")
        job = new_job(context)

        await job.get(DispatchState.DONE)

        assert job.dispatch_state == DispatchState.FAILED
        assert job.is_failed is True

    @pytest.mark.asyncio
    async def test_timeout(self, context):
        context.respond_with("job_running.xml")
        job = new_job(context)

        with pytest.raises(JobTimeoutError, match="DONE"):
            await job.get(DispatchState.DONE, timeout=0)

    @pytest.mark.asyncio
    async def test_transition_skips_poll(self, context):
        context.respond_with("job_done.xml")
        job = new_job(context)
        await job.get()

        await job.transition(DispatchState.DONE)

        assert len(context.requests) == 1


class TestJobProperties:

    @pytest.mark.asyncio
    async def test_snapshot(self, context):
        context.respond_with("job_done.xml")
        job = new_job(context)

        await job.get()

        assert job.sid == "1705312800.42"
        assert job.search == "search index=main error | head 10"
        assert job.done_progress == 1.0
        assert job.event_count == 10
        assert job.result_count == 2
        assert job.run_duration == 0.412
        assert job.priority == 5
        assert job.ttl == 600
        assert job.is_paused is False
        assert job.links["results"] == "/services/search/jobs/1705312800.42/results"

    def test_unread_job(self, context):
        job = new_job(context)

        assert job.dispatch_state == DispatchState.NONE
        assert job.sid == "1705312800.42"


class TestJobResults:
    """Test cases for reading job results"""

    @pytest.mark.asyncio
    async def test_get_search_results(self, context):
        context.respond_with("job_done.xml")
        context.respond_with("results.xml")
        job = new_job(context)

        stream = await job.get_search_results(10)

        assert context.requests[1][1] == f"{JOB_URL}/results?count=10"
        assert [result["host"] for result in stream] == ["web-01", "db-01"]

    @pytest.mark.asyncio
    async def test_results_default_reads_all(self, context):
        context.respond_with("job_done.xml")
        context.respond_with("results.xml")
        job = new_job(context)

        await job.get_search_results()

        assert context.requests[1][1] == f"{JOB_URL}/results?count=0"

    @pytest.mark.asyncio
    async def test_results_with_args(self, context):
        context.respond_with("job_done.xml")
        context.respond_with("results.xml")
        job = new_job(context)

        await job.get_search_results(SearchResultArgs(field_list=["host", "_raw"], offset=5))

        assert context.requests[1][1] == f"{JOB_URL}/results?f=host&f=_raw&offset=5"

    @pytest.mark.asyncio
    async def test_events_and_preview(self, context):
        context.respond_with("job_done.xml")
        context.respond_with("results.xml")
        context.respond_with("results.xml")
        job = new_job(context)

        await job.get_search_events(5)
        await job.get_search_preview(5)

        assert context.requests[1][1] == f"{JOB_URL}/events?count=5"
        assert context.requests[2][1] == f"{JOB_URL}/results_preview?count=5"

    @pytest.mark.asyncio
    async def test_failed_job(self, context):
        context.respond_with("job_failed.xml")
        job = new_job(context)

        with pytest.raises(JobFailedError) as exc_info:
            await job.get_search_results()

        assert exc_info.value.sid == "1705312800.42"
        assert "Unable to parse the search" in str(exc_info.value)
        assert len(context.requests) == 1

    @pytest.mark.asyncio
    async def test_response_message(self, context):
        context.respond_with("job_done.xml")
        context.respond(200, '{"results": []}')
        job = new_job(context)

        response = await job.get_search_response_message(output_mode=OutputMode.JSON)

        assert context.requests[1][1] == f"{JOB_URL}/results?count=0&output_mode=json"
        assert response.text == '{"results": []}'


class TestJobControl:
    """Test cases for job control actions"""

    @pytest.mark.asyncio
    async def test_cancel(self, context):
        context.respond_with("job_running.xml")
        context.respond(200)
        job = new_job(context)

        await job.cancel()

        method, url, _, body = context.requests[1]
        assert method == "POST"
        assert url == f"{JOB_URL}/control"
        assert parse_qsl(body.decode()) == [("action", "cancel")]

    @pytest.mark.asyncio
    async def test_set_priority(self, context):
        context.respond_with("job_done.xml")
        context.respond(200)
        context.respond(200)
        job = new_job(context)

        await job.set_priority(3)
        await job.touch(300)

        assert parse_qsl(context.requests[1][3].decode()) == [("action", "setpriority"), ("priority", "3")]
        assert parse_qsl(context.requests[2][3].decode()) == [("action", "touch"), ("ttl", "300")]


class TestJobCollection:
    """Test cases for creating search jobs"""

    @pytest.mark.asyncio
    async def test_create(self, context):
        context.respond_with("job_created.xml", status=201)
        context.respond_with("job_running.xml")
        jobs = JobCollection(context)

        job = await jobs.create("search index=main error | head 10", JobArgs(earliest_time="-1h", max_count=10))

        method, url, _, body = context.requests[0]
        assert method == "POST"
        assert url == "https://test-splunk.com:8089/services/search/jobs"
        assert parse_qsl(body.decode()) == [
            ("search", "search index=main error | head 10"),
            ("earliest_time", "-1h"),
            ("max_count", "10"),
        ]
        assert context.requests[1][1] == JOB_URL
        assert job.sid == "1705312800.42"
        assert job.dispatch_state == DispatchState.RUNNING

    @pytest.mark.asyncio
    async def test_list(self, context, data):
        feed = data("indexes.xml").replace("data/indexes", "search/jobs")
        context.respond(200, feed)
        jobs = JobCollection(context)

        await jobs.get_all()

        assert all(isinstance(job, Job) for job in jobs)
        assert [job.sid for job in jobs] == ["main", "security"]
