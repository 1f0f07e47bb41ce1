"""
Record/playback test harness

MockContext is a Context whose transport can record every HTTP exchange of
a test into <recording_dir>/<caller_id>.json.gz and play it back later
without a Splunk server. Requests are matched to recordings by a SHA-512
checksum of the serialized request.

    MOCK_CONTEXT_MODE=Record pytest ...     # against a live server
    MOCK_CONTEXT_MODE=Playback pytest ...   # offline

Values that differ from run to run (generated names, timestamps) go through
MockContext.get_or_else so that playback sees the recorded values.
"""

import base64
import gzip
import hashlib
import json
import logging
import os
from collections import deque
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Deque, Dict, Iterator, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, Field

from .context import Context, Response
from .exceptions import RecordingOutOfSyncError

logger = logging.getLogger(__name__)

T = TypeVar("T")

CRLF = b"\r\n"


class MockContextMode(str, Enum):
    RUN = "Run"
    RECORD = "Record"
    PLAYBACK = "Playback"

    @classmethod
    def from_text(cls, value: str) -> "MockContextMode":
        for mode in cls:
            if mode.value.lower() == value.strip().lower():
                return mode
        raise ValueError(f"Unknown mock context mode: {value!r}")


def compute_checksum(method: str, url: str, headers: Dict[str, str], body: bytes) -> str:
    """Base64 SHA-512 of the request line, headers, blank line and body"""
    digest = hashlib.sha512()
    digest.update(f"{method} {url} HTTP/1.1".encode("utf-8") + CRLF)
    for name, value in headers.items():
        digest.update(f"{name}: {value}".encode("utf-8") + CRLF)
    digest.update(CRLF)
    digest.update(body or b"")
    return base64.b64encode(digest.digest()).decode("ascii")


class Recording(BaseModel):
    """A response captured for the request with the given checksum"""
    checksum: str
    status: int
    reason: str = ""
    headers: List[Tuple[str, str]] = Field(default_factory=list)
    content: str = ""

    @classmethod
    def from_response(cls, checksum: str, response: Response) -> "Recording":
        return cls(
            checksum=checksum,
            status=response.status,
            reason=response.reason,
            headers=response.headers,
            content=base64.b64encode(response.body).decode("ascii"),
        )

    def to_response(self) -> Response:
        return Response(
            status=self.status,
            reason=self.reason,
            headers=list(self.headers),
            body=base64.b64decode(self.content),
        )


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return {"__datetime__": value.isoformat()}
    return value


def _decode_value(value: Any) -> Any:
    if isinstance(value, dict) and set(value) == {"__datetime__"}:
        return datetime.fromisoformat(value["__datetime__"])
    return value


class Session:
    """The data and recordings of one test"""

    def __init__(self, name: str):
        self.name = name
        self.data: Deque[Any] = deque()
        self.recordings: Deque[Recording] = deque()

    def to_json(self) -> str:
        return json.dumps({
            "name": self.name,
            "data": [_encode_value(value) for value in self.data],
            "recordings": [recording.model_dump() for recording in self.recordings],
        })

    @classmethod
    def from_json(cls, text: str) -> "Session":
        document = json.loads(text)
        session = cls(document["name"])
        session.data.extend(_decode_value(value) for value in document.get("data", []))
        session.recordings.extend(Recording.model_validate(item) for item in document.get("recordings", []))
        return session

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with gzip.open(path, "wt", encoding="utf-8") as f:
            f.write(self.to_json())

    @classmethod
    def load(cls, path: Path) -> "Session":
        with gzip.open(path, "rt", encoding="utf-8") as f:
            return cls.from_json(f.read())


class MockContext(Context):
    """Context that runs, records or plays back HTTP exchanges"""

    mode: ClassVar[MockContextMode] = MockContextMode.from_text(os.getenv("MOCK_CONTEXT_MODE", "Run"))
    recording_dir: ClassVar[Path] = Path(os.getenv("MOCK_CONTEXT_RECORDING_DIR", Path("data") / "recordings"))
    recording_filename: ClassVar[Optional[Path]] = None
    current_session: ClassVar[Optional[Session]] = None

    @classmethod
    def configure(cls, mode: Optional[MockContextMode] = None, recording_dir: Optional[Path] = None) -> None:
        if mode is not None:
            cls.mode = mode
        if recording_dir is not None:
            cls.recording_dir = Path(recording_dir)

    @classmethod
    def caller_id(cls) -> Optional[str]:
        return cls.current_session.name if cls.current_session else None

    @classmethod
    def begin(cls, caller_id: str) -> None:
        """Start the session of one test"""
        cls.recording_filename = cls.recording_dir / f"{caller_id}.json.gz"

        if cls.mode == MockContextMode.PLAYBACK:
            cls.current_session = Session.load(cls.recording_filename)
            logger.debug(f"Playing back {len(cls.current_session.recordings)} recordings for {caller_id}")
        else:
            cls.current_session = Session(caller_id)

    @classmethod
    def end(cls) -> None:
        """Finish the session; recordings are written in Record mode"""
        session = cls.current_session
        cls.current_session = None

        if session is None:
            return

        if cls.mode == MockContextMode.RECORD:
            session.save(cls.recording_filename)
            logger.info(f"Saved {len(session.recordings)} recordings to {cls.recording_filename}")
        elif cls.mode == MockContextMode.PLAYBACK:
            if session.data or session.recordings:
                raise RecordingOutOfSyncError(
                    f"The recording in {cls.recording_dir} for {session.name} was not fully consumed"
                )

    @classmethod
    @contextmanager
    def recording(cls, caller_id: str) -> Iterator[None]:
        cls.begin(caller_id)
        try:
            yield
        finally:
            cls.end()

    @classmethod
    def get_or_else(cls, value: T) -> T:
        """Pass a value through, record it, or replace it with the recorded one"""
        if cls.mode == MockContextMode.RUN or cls.current_session is None:
            return value

        if cls.mode == MockContextMode.RECORD:
            if isinstance(value, datetime):
                value = value.replace(microsecond=0)
            if value is not None:
                cls.current_session.data.append(value)
            return value

        if not cls.current_session.data:
            raise RecordingOutOfSyncError(f"No recorded value left for {cls.current_session.name}")
        return cls.current_session.data.popleft()

    async def _send(self, method: str, url: str, headers: Dict[str, str], body: bytes) -> Response:
        cls = type(self)
        session = cls.current_session

        if cls.mode == MockContextMode.RUN or session is None:
            return await super()._send(method, url, headers, body)

        checksum = compute_checksum(method, url, headers, body)

        if cls.mode == MockContextMode.RECORD:
            response = await super()._send(method, url, headers, body)
            session.recordings.append(Recording.from_response(checksum, response))
            return response

        if not session.recordings:
            raise RecordingOutOfSyncError(f"The recording in {cls.recording_dir} has no response for {method} {url}")

        recording = session.recordings.popleft()
        if recording.checksum != checksum:
            raise RecordingOutOfSyncError(
                f"The recording in {cls.recording_dir} is out of sync with {session.name}."
            )

        return recording.to_response()
