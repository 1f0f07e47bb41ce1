"""
Modular inputs

Splunk runs a modular input script in one of three ways:

    script --scheme                 print the input's <scheme> document
    script --validate-arguments     validate an <items> document read from stdin
    script                          stream events for an <input> document read from stdin

Subclass ModularInput, implement get_scheme and stream_events (and
optionally validate), then call MyInput.run() from the script.
"""

import asyncio
import logging
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, TextIO, Union
from urllib.parse import urlsplit

import xmltodict
from pydantic import BaseModel, Field

from .context import Context
from .service import Service

logger = logging.getLogger(__name__)

_XML_DECLARATION = re.compile(r"<\?xml[^>]*\?>")

_LIST_ELEMENTS = ("stanza", "item", "param", "param_list", "value")

ParameterValue = Union[str, List[str]]


class Severity(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"


class StreamingMode(str, Enum):
    SIMPLE = "simple"
    XML = "xml"


class DataType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


def _parse(text: str) -> Dict[str, Any]:
    return xmltodict.parse(_XML_DECLARATION.sub("", text).strip(), force_list=_LIST_ELEMENTS)


def _text(node: Any) -> Optional[str]:
    if node is None or isinstance(node, str):
        return node
    return node.get("#text")


def _read_parameters(node: Optional[Dict[str, Any]]) -> Dict[str, ParameterValue]:
    parameters: Dict[str, ParameterValue] = {}
    if not node:
        return parameters

    for param in node.get("param", []):
        parameters[param["@name"]] = _text(param) or ""

    for param_list in node.get("param_list", []):
        parameters[param_list["@name"]] = [_text(value) or "" for value in param_list.get("value", [])]

    return parameters


@dataclass
class _Definition:
    name: Optional[str] = None
    parameters: Dict[str, ParameterValue] = field(default_factory=dict)
    server_host: Optional[str] = None
    server_uri: Optional[str] = None
    checkpoint_directory: Optional[str] = None
    session_key: Optional[str] = None

    @staticmethod
    def _common(root: Dict[str, Any]) -> Dict[str, Optional[str]]:
        return {
            "server_host": _text(root.get("server_host")),
            "server_uri": _text(root.get("server_uri")),
            "checkpoint_directory": _text(root.get("checkpoint_dir")),
            "session_key": _text(root.get("session_key")),
        }


@dataclass
class InputDefinition(_Definition):
    """The <input> document Splunk passes when starting an input"""
    _service: Optional[Service] = field(default=None, repr=False)

    @classmethod
    def from_xml(cls, text: str) -> "InputDefinition":
        root = _parse(text).get("input") or {}
        configuration = root.get("configuration") or {}
        stanzas = configuration.get("stanza", [])
        stanza = stanzas[0] if stanzas else None

        return cls(
            name=stanza.get("@name") if stanza else None,
            parameters=_read_parameters(stanza),
            **cls._common(root),
        )

    @property
    def service(self) -> Service:
        """Service bound to the server URI and session key Splunk provided"""
        if self._service is None:
            if not self.server_uri:
                raise ValueError("Cannot get a Service object without a server URI")

            uri = urlsplit(self.server_uri)
            if uri.scheme not in ("http", "https"):
                raise ValueError(f"Invalid URI scheme: {uri.scheme}; expected http or https")

            context = Context(uri.scheme, uri.hostname or "", uri.port or 8089)
            context.session_key = self.session_key
            self._service = Service(context)

        return self._service

    async def close(self) -> None:
        if self._service is not None:
            await self._service.close()
            self._service = None


@dataclass
class ValidationDefinition(_Definition):
    """The <items> document Splunk passes to --validate-arguments"""

    @classmethod
    def from_xml(cls, text: str) -> "ValidationDefinition":
        root = _parse(text).get("items") or {}
        items = root.get("item", [])
        item = items[0] if items else None

        return cls(
            name=item.get("@name") if item else None,
            parameters=_read_parameters(item),
            **cls._common(root),
        )


def _flag(value: bool) -> str:
    return "true" if value else "false"


class SchemeArgument(BaseModel):
    """An argument of the input's REST endpoint"""
    name: str
    title: Optional[str] = None
    description: Optional[str] = None
    data_type: DataType = DataType.STRING
    required_on_create: bool = False
    required_on_edit: bool = False
    validation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        arg: Dict[str, Any] = {"@name": self.name}
        if self.title is not None:
            arg["title"] = self.title
        if self.description is not None:
            arg["description"] = self.description
        arg["data_type"] = self.data_type.value
        arg["required_on_create"] = _flag(self.required_on_create)
        arg["required_on_edit"] = _flag(self.required_on_edit)
        if self.validation is not None:
            arg["validation"] = self.validation
        return arg


class Scheme(BaseModel):
    """Introspection scheme of a modular input"""
    title: str
    description: Optional[str] = None
    use_external_validation: bool = True
    use_single_instance: bool = False
    streaming_mode: StreamingMode = StreamingMode.XML
    arguments: List[SchemeArgument] = Field(default_factory=list)

    def to_xml(self) -> str:
        scheme: Dict[str, Any] = {"title": self.title}
        if self.description is not None:
            scheme["description"] = self.description
        scheme["use_external_validation"] = _flag(self.use_external_validation)
        scheme["use_single_instance"] = _flag(self.use_single_instance)
        scheme["streaming_mode"] = self.streaming_mode.value
        scheme["endpoint"] = {"args": {"arg": [argument.to_dict() for argument in self.arguments]}}

        return xmltodict.unparse({"scheme": scheme}, pretty=True)


@dataclass
class Event:
    """An event written to Splunk in XML streaming mode"""
    data: Optional[str] = None
    stanza: Optional[str] = None
    time: Optional[Union[datetime, float]] = None
    host: Optional[str] = None
    index: Optional[str] = None
    source: Optional[str] = None
    sourcetype: Optional[str] = None
    done: bool = False
    unbroken: bool = True

    def to_xml(self) -> str:
        event: Dict[str, Any] = {}
        if self.stanza is not None:
            event["@stanza"] = self.stanza
        if self.unbroken:
            event["@unbroken"] = "1"

        if self.time is not None:
            seconds = self.time.timestamp() if isinstance(self.time, datetime) else float(self.time)
            event["time"] = f"{seconds:.3f}"

        for name in ("host", "index", "source", "sourcetype", "data"):
            value = getattr(self, name)
            if value is not None:
                event[name] = value

        if self.done:
            event["done"] = None

        return xmltodict.unparse({"event": event}, full_document=False)


class EventWriter:
    """Writes the <stream> of events to stdout and log lines to stderr"""

    def __init__(self, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self._started = False
        self._closed = False

    def _start(self) -> None:
        if not self._started:
            self.stdout.write("<stream>")
            self._started = True

    def write(self, event: Event) -> None:
        if self._closed:
            raise ValueError("Cannot write to a closed EventWriter")
        self._start()
        self.stdout.write(event.to_xml())
        self.stdout.flush()

    def log(self, severity: Union[Severity, str], message: str) -> None:
        """Write a line Splunk copies into splunkd.log"""
        level = severity.value if isinstance(severity, Severity) else str(severity).upper()
        self.stderr.write(f"{level} {message}\n")
        self.stderr.flush()

    def close(self) -> None:
        if self._closed:
            return
        self._start()
        self.stdout.write("</stream>")
        self.stdout.flush()
        self._closed = True


class ModularInput:
    """Base class of modular input scripts"""

    exit_success: ClassVar[int] = 0
    exit_failure: ClassVar[int] = 1

    def get_scheme(self) -> Scheme:
        raise NotImplementedError

    async def validate(self, definition: ValidationDefinition) -> None:
        """Raise an exception to reject the arguments; its message is shown to the user"""

    async def stream_events(self, definition: InputDefinition, writer: EventWriter) -> None:
        raise NotImplementedError

    async def run_async(self, args: List[str], stdin: TextIO, stdout: TextIO, stderr: TextIO) -> int:
        writer = EventWriter(stdout, stderr)

        if not args:
            definition = InputDefinition.from_xml(stdin.read())
            try:
                await self.stream_events(definition, writer)
                return self.exit_success
            except Exception as e:
                logger.error(f"Modular input {definition.name} failed: {e}")
                writer.log(Severity.FATAL, f"Exception during streaming: {e}")
                return self.exit_failure
            finally:
                writer.close()
                await definition.close()

        command = args[0].lower()

        if command == "--scheme":
            try:
                scheme = self.get_scheme()
            except NotImplementedError:
                writer.log(Severity.FATAL, "Modular input script returned a null scheme.")
                return self.exit_failure
            stdout.write(scheme.to_xml())
            stdout.flush()
            return self.exit_success

        if command == "--validate-arguments":
            definition = ValidationDefinition.from_xml(stdin.read())
            try:
                await self.validate(definition)
                return self.exit_success
            except Exception as e:
                stdout.write(xmltodict.unparse({"error": {"message": str(e)}}, full_document=False))
                stdout.flush()
                return self.exit_failure

        writer.log(Severity.ERROR, f"Invalid arguments to modular input script: {' '.join(args)}")
        return self.exit_failure

    @classmethod
    def run(cls, args: Optional[List[str]] = None) -> None:
        """Entry point of a modular input script; exits with the script's status"""
        if args is None:
            args = sys.argv[1:]
        sys.exit(asyncio.run(cls().run_async(args, sys.stdin, sys.stdout, sys.stderr)))
