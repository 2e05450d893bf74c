"""
Operation Context.

A host-neutral view of one provider request: which packages the caller
wants, the parameters to hand to lifecycle scripts, and a side channel for
trace output.

Key features:
- Name (exact or wildcard) and version match predicate
- Typed script parameters with a pass-through mapping
- Channel-tagged trace events mirrored to logging
- Non-terminating error collection
"""

import fnmatch
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from zipkg.provider.descriptor import Package, Version
from zipkg.provider.errors import ProviderError

logger = logging.getLogger(__name__)

_WILDCARD_CHARS = frozenset("*?[")


class Channel(Enum):
    """Trace channel enumeration."""

    VERBOSE = "verbose"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    Channel.VERBOSE: logging.DEBUG,
    Channel.DEBUG: logging.DEBUG,
    Channel.INFO: logging.INFO,
    Channel.WARNING: logging.WARNING,
    Channel.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class TraceEvent:
    channel: Channel
    message: str


TraceSink = Callable[[TraceEvent], None]


@dataclass
class ScriptParameters:
    """
    Parameters passed to lifecycle scripts.

    Attributes:
        timeout: Per-request script timeout in seconds, overriding the
            provider setting (0 disables)
        extra: Script-specific values, exported as ZIPKG_PARAM_<KEY>

    The "verbose" and "debug" keys are accepted but have no effect: scripts
    always run with both diagnostic modes on.
    """

    RECOGNIZED = ("timeout", "verbose", "debug")

    timeout: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> "ScriptParameters":
        params = cls()
        for key, value in (values or {}).items():
            lowered = key.lower()
            if lowered == "timeout":
                try:
                    params.timeout = int(value)
                except (TypeError, ValueError) as e:
                    raise ProviderError(f"Invalid script timeout: {value!r}") from e
            elif lowered in ("verbose", "debug"):
                continue
            else:
                params.extra[key] = value
        return params

    @classmethod
    def from_pairs(cls, pairs: Iterable[str]) -> "ScriptParameters":
        """
        Build parameters from "key=value" strings.

        Raises:
            ProviderError: If a pair has no "=" or an empty key
        """
        values = {}
        for pair in pairs:
            key, sep, value = pair.partition("=")
            if not sep or not key.strip():
                raise ProviderError(f"Invalid parameter '{pair}', expected key=value")
            values[key.strip()] = value
        return cls.from_mapping(values)

    def to_env(self) -> dict[str, str]:
        env = {"ZIPKG_VERBOSE": "1", "ZIPKG_DEBUG": "1"}
        for key, value in self.extra.items():
            env[f"ZIPKG_PARAM_{key.upper()}"] = str(value)
        return env


class OperationContext:
    """
    Per-request context handed to every engine operation.

    Trace events are recorded on the context, mirrored to the zipkg logger
    and forwarded to the optional sink.
    """

    def __init__(
        self,
        name: str | None = None,
        version: Version | str | None = None,
        parameters: ScriptParameters | Mapping[str, Any] | None = None,
        sink: TraceSink | None = None,
    ):
        """
        Initialize OperationContext.

        Args:
            name: Name filter, exact or with wildcards (*, ?, [...])
            version: Exact version filter
            parameters: Script parameters, typed or as a plain mapping
            sink: Callable receiving every trace event
        """
        if not isinstance(parameters, ScriptParameters):
            parameters = ScriptParameters.from_mapping(parameters)

        self.name = name
        self.version = Version(version) if version else None
        self.parameters = parameters
        self.sink = sink
        self.events: list[TraceEvent] = []
        self.errors: list[ProviderError] = []

    def with_filter(
        self, name: str | None, version: Version | str | None
    ) -> "OperationContext":
        """
        Derive a context sharing this one's parameters and trace output.

        A filter passed as None keeps this context's own filter.
        """
        child = OperationContext(
            name if name is not None else self.name,
            version if version is not None else self.version,
            self.parameters,
            self.sink,
        )
        child.events = self.events
        child.errors = self.errors
        return child

    def is_match(self, package: Package) -> bool:
        """
        Check a package against the name and version filters.

        Names match case-insensitively; wildcard patterns use fnmatch rules.
        """
        if self.name:
            if _WILDCARD_CHARS.intersection(self.name):
                if not fnmatch.fnmatchcase(package.name.lower(), self.name.lower()):
                    return False
            elif package.name.lower() != self.name.lower():
                return False

        if self.version is not None and package.version != self.version:
            return False

        return True

    def emit(self, channel: Channel, message: str) -> None:
        event = TraceEvent(channel, message)
        self.events.append(event)
        logger.log(_LOG_LEVELS[channel], "[%s] %s", channel.value, message)
        if self.sink is not None:
            self.sink(event)

    def verbose(self, message: str) -> None:
        self.emit(Channel.VERBOSE, message)

    def debug(self, message: str) -> None:
        self.emit(Channel.DEBUG, message)

    def info(self, message: str) -> None:
        self.emit(Channel.INFO, message)

    def warning(self, message: str) -> None:
        self.emit(Channel.WARNING, message)

    def error(self, message: str) -> None:
        self.emit(Channel.ERROR, message)

    def write_error(self, error: ProviderError) -> None:
        """Record a non-terminating error and trace it on the error channel."""
        self.errors.append(error)
        self.error(str(error))
