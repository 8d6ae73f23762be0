"""Destination error ADT.

Closed set of frozen dataclasses describing why a destination configuration
cannot be used. These are returned, not raised, so callers can branch on the
variant with ``isinstance``.

Every variant carries the destination type and the configuration exactly as
the caller supplied it. Redact before logging, see
``services.config_parser.sanitize_config``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple, Union

from .models import DestinationType


@dataclass(frozen=True)
class MalformedConfiguration:
    """Configuration failed to parse or shape-check. No probe was attempted.

    Attributes:
        destination_type: Destination the configuration was meant for
        original_config: Raw input as supplied
        reason: Stable literal describing the first shape violation
    """

    destination_type: DestinationType
    original_config: Any
    reason: str

    @property
    def kind(self) -> str:
        return "MalformedConfiguration"


@dataclass(frozen=True)
class InvalidConfiguration:
    """Configuration is well-formed but semantically invalid (e.g. missing bucket).

    Attributes:
        destination_type: Destination the configuration was meant for
        original_config: Raw input as supplied
        reasons: Non-empty ordered tuple of stable literal reasons
    """

    destination_type: DestinationType
    original_config: Any
    reasons: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.reasons:
            raise ValueError("InvalidConfiguration requires at least one reason")
        # Accept any sequence from callers, store a tuple
        object.__setattr__(self, "reasons", tuple(self.reasons))

    @property
    def kind(self) -> str:
        return "InvalidConfiguration"


@dataclass(frozen=True)
class AccessDenied:
    """Credentials rejected by the remote service.

    Attributes:
        destination_type: Destination the configuration was meant for
        original_config: Raw input as supplied
        message: Stable literal message
    """

    destination_type: DestinationType
    original_config: Any
    message: str

    @property
    def kind(self) -> str:
        return "AccessDenied"


@dataclass(frozen=True)
class ConnectionFailed:
    """Transport-level failure (DNS, timeout, malformed response).

    Attributes:
        destination_type: Destination the configuration was meant for
        original_config: Raw input as supplied
        detail: Rendered transport failure description
    """

    destination_type: DestinationType
    original_config: Any
    detail: str

    @property
    def kind(self) -> str:
        return "ConnectionFailed"


DestinationError = Union[MalformedConfiguration, InvalidConfiguration, AccessDenied, ConnectionFailed]

DESTINATION_ERROR_TYPES = (MalformedConfiguration, InvalidConfiguration, AccessDenied, ConnectionFailed)


def is_destination_error(value: Any) -> bool:
    return isinstance(value, DESTINATION_ERROR_TYPES)


def error_reasons(err: DestinationError) -> Tuple[str, ...]:
    """Human-readable reasons for any variant, in order."""
    if isinstance(err, MalformedConfiguration):
        return (err.reason,)
    if isinstance(err, InvalidConfiguration):
        return err.reasons
    if isinstance(err, AccessDenied):
        return (err.message,)
    if isinstance(err, ConnectionFailed):
        return (err.detail,)
    raise TypeError(f"Not a destination error: {err!r}")
