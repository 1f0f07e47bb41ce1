"""
Tests for the record/playback context
"""

from datetime import datetime

import pytest

from splunk_sdk.context import Namespace, ResourceName, Response
from splunk_sdk.exceptions import RecordingOutOfSyncError
from splunk_sdk.mock_context import MockContext, MockContextMode, Session, compute_checksum
from splunk_sdk.server import Server


@pytest.fixture
def recording_dir(tmp_path):
    mode, directory = MockContext.mode, MockContext.recording_dir
    MockContext.configure(recording_dir=tmp_path)
    yield tmp_path
    MockContext.current_session = None
    MockContext.configure(mode=mode, recording_dir=directory)


@pytest.fixture
def server_send(monkeypatch, data):
    """Stand-in for the live server behind a recording context"""
    calls = []

    async def send(self, method, url, headers, body):
        calls.append((method, url))
        return Response(200, "OK", [("Content-Type", "text/xml")], data("server_info.xml").encode())

    monkeypatch.setattr("splunk_sdk.context.Context._send", send)
    return calls


async def read_server_name(context) -> str:
    info = await Server(context).get_info()
    return info.server_name


class TestChecksum:

    def test_stable(self):
        first = compute_checksum("GET", "https://localhost:8089/services/server/info", {"Authorization": "Splunk k"}, b"")
        second = compute_checksum("GET", "https://localhost:8089/services/server/info", {"Authorization": "Splunk k"}, b"")

        assert first == second
        assert len(first) == 88

    def test_sensitive_to_request(self):
        url = "https://localhost:8089/services/search/jobs"

        checksums = {
            compute_checksum("POST", url, {}, b"search=a"),
            compute_checksum("POST", url, {}, b"search=b"),
            compute_checksum("GET", url, {}, b"search=a"),
            compute_checksum("POST", url, {"Authorization": "Splunk k"}, b"search=a"),
        }

        assert len(checksums) == 4


class TestModes:

    def test_mode_from_text(self):
        assert MockContextMode.from_text("playback") is MockContextMode.PLAYBACK
        assert MockContextMode.from_text(" Record ") is MockContextMode.RECORD

        with pytest.raises(ValueError):
            MockContextMode.from_text("replay")

    def test_run_mode_passes_values_through(self, recording_dir):
        MockContext.configure(mode=MockContextMode.RUN)

        with MockContext.recording("test_run"):
            assert MockContext.get_or_else("value") == "value"

        assert not (recording_dir / "test_run.json.gz").exists()


class TestRecordAndPlayback:
    """Test cases for recording a session and playing it back"""

    @pytest.mark.asyncio
    async def test_round_trip(self, recording_dir, server_send):
        created = datetime(2024, 1, 15, 10, 0, 0, 123456)

        MockContext.configure(mode=MockContextMode.RECORD)
        with MockContext.recording("test_server_info"):
            context = MockContext("https", "localhost", 8089)
            assert await read_server_name(context) == "test-splunk"
            assert MockContext.get_or_else(created) == datetime(2024, 1, 15, 10, 0, 0)
            assert MockContext.get_or_else("index-1234") == "index-1234"

        assert len(server_send) == 1
        assert (recording_dir / "test_server_info.json.gz").exists()

        MockContext.configure(mode=MockContextMode.PLAYBACK)
        with MockContext.recording("test_server_info"):
            context = MockContext("https", "localhost", 8089)
            assert await read_server_name(context) == "test-splunk"
            assert MockContext.get_or_else(datetime.now()) == datetime(2024, 1, 15, 10, 0, 0)
            assert MockContext.get_or_else("index-9999") == "index-1234"

        assert len(server_send) == 1

    @pytest.mark.asyncio
    async def test_playback_keeps_http_session_closed(self, recording_dir, server_send):
        MockContext.configure(mode=MockContextMode.RECORD)
        with MockContext.recording("test_http_session"):
            await read_server_name(MockContext("https", "localhost", 8089))

        MockContext.configure(mode=MockContextMode.PLAYBACK)
        server_send.clear()
        with MockContext.recording("test_http_session"):
            context = MockContext("https", "localhost", 8089)
            assert await read_server_name(context) == "test-splunk"
            assert context.session is None
            assert MockContext.current_session.name == "test_http_session"

        assert server_send == []

    @pytest.mark.asyncio
    async def test_out_of_sync(self, recording_dir, server_send):
        MockContext.configure(mode=MockContextMode.RECORD)
        with MockContext.recording("test_out_of_sync"):
            await read_server_name(MockContext("https", "localhost", 8089))

        MockContext.configure(mode=MockContextMode.PLAYBACK)
        MockContext.begin("test_out_of_sync")
        context = MockContext("https", "localhost", 8089)

        with pytest.raises(RecordingOutOfSyncError, match="out of sync with test_out_of_sync"):
            await context.get(Namespace(), ResourceName("server", "settings", "settings"))

    @pytest.mark.asyncio
    async def test_unconsumed_recordings(self, recording_dir, server_send):
        MockContext.configure(mode=MockContextMode.RECORD)
        with MockContext.recording("test_unconsumed"):
            await read_server_name(MockContext("https", "localhost", 8089))

        MockContext.configure(mode=MockContextMode.PLAYBACK)
        MockContext.begin("test_unconsumed")

        with pytest.raises(RecordingOutOfSyncError):
            MockContext.end()

    @pytest.mark.asyncio
    async def test_no_recording_left(self, recording_dir):
        MockContext.configure(mode=MockContextMode.PLAYBACK)
        Session("test_empty").save(recording_dir / "test_empty.json.gz")
        MockContext.begin("test_empty")
        context = MockContext("https", "localhost", 8089)

        with pytest.raises(RecordingOutOfSyncError, match="no response"):
            await context.get(Namespace(), ResourceName("server", "info"))

        with pytest.raises(RecordingOutOfSyncError):
            MockContext.get_or_else("value")


class TestSession:

    def test_json(self):
        session = Session("test_session")
        session.data.extend([datetime(2024, 1, 15, 10, 0), 42, "name"])

        restored = Session.from_json(session.to_json())

        assert restored.name == "test_session"
        assert list(restored.data) == [datetime(2024, 1, 15, 10, 0), 42, "name"]
        assert len(restored.recordings) == 0
