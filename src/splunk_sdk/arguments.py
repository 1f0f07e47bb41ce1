"""
Request argument serialization

Endpoint arguments are declared as pydantic models. Each field carries a
Param annotation naming the REST parameter and how it is emitted:

    class IndexFilter(Args):
        count: Annotated[int, Param("count")] = 30
        search: Annotated[Optional[str], Param("search")] = None

    IndexFilter(count=100).arguments()  # [Argument("count", "100")]
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Iterable, Iterator, List, Mapping, NamedTuple, Tuple, Type
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict
from pydantic.fields import FieldInfo

from .exceptions import MissingArgumentError


class Argument(NamedTuple):
    """A single name/value pair sent to Splunk"""
    name: str
    value: str

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


@dataclass(frozen=True)
class Param:
    """REST name and emission rules of an Args field"""
    name: str
    order: int = 0
    required: bool = False
    emit_default: bool = False


class SortDirection(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


class SortMode(str, Enum):
    AUTOMATIC = "auto"
    ALPHABETIC = "alpha"
    ALPHABETIC_CASE_SENSITIVE = "alpha_case"
    NUMERIC = "num"


def format_value(value: Any) -> str:
    """Format a value the way Splunk expects it on the wire."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def _is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


@lru_cache(maxsize=None)
def _parameters(args_class: Type["Args"]) -> Tuple[Tuple[str, Param, FieldInfo], ...]:
    parameters = []

    for field_name, info in args_class.model_fields.items():
        param = next((m for m in info.metadata if isinstance(m, Param)), None)
        if param is None:
            raise TypeError(f"Missing Param declaration on {args_class.__name__}.{field_name}")
        parameters.append((field_name, param, info))

    return tuple(sorted(parameters, key=lambda p: (p[1].order, p[1].name)))


class Args(BaseModel):
    """Base class for typed endpoint arguments"""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    def arguments(self) -> List[Argument]:
        """Serialize the fields that must be sent, in parameter order."""
        result = []

        for field_name, param, info in _parameters(type(self)):
            value = getattr(self, field_name)

            if value is None:
                if param.required:
                    raise MissingArgumentError(f"Missing value for required parameter {param.name}")
                continue

            always_emitted = param.required or param.emit_default or info.is_required()
            if not always_emitted and value == info.get_default(call_default_factory=True):
                continue

            if _is_collection(value):
                result.extend(Argument(param.name, format_value(item)) for item in value)
            else:
                result.append(Argument(param.name, format_value(value)))

        return result

    def __str__(self) -> str:
        parts = []

        for field_name, param, _ in _parameters(type(self)):
            value = getattr(self, field_name)

            if value is None:
                parts.append(f"{param.name}=null")
            elif _is_collection(value):
                parts.extend(f"{param.name}={format_value(item)}" for item in value)
            else:
                parts.append(f"{param.name}={format_value(value)}")

        return "; ".join(parts)


def iter_arguments(*argument_sets: Any) -> Iterator[Argument]:
    """
    Flatten argument sets into Arguments.

    A set may be None, an Args instance, anything else with an arguments()
    method, a mapping of name to value, or an iterable of Argument or
    (name, value) pairs.
    """
    for argument_set in argument_sets:
        if argument_set is None:
            continue

        if hasattr(argument_set, "arguments"):
            yield from argument_set.arguments()
        elif isinstance(argument_set, Mapping):
            for name, value in argument_set.items():
                if value is None:
                    continue
                if _is_collection(value):
                    for item in value:
                        yield Argument(name, format_value(item))
                else:
                    yield Argument(name, format_value(value))
        else:
            for name, value in argument_set:
                yield Argument(name, format_value(value))


def encode_arguments(arguments: Iterable[Argument]) -> str:
    """Percent-encode arguments as name=value pairs joined by '&'."""
    return "&".join(
        f"{quote(argument.name, safe='')}={quote(argument.value, safe='')}"
        for argument in arguments
    )
