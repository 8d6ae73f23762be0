"""
Probe outcome -> DestinationError mapping.

Messages are part of the public contract: callers pattern-match on them.
"""

from __future__ import annotations

from typing import Any, Optional

from ..core.errors import AccessDenied, ConnectionFailed, DestinationError, InvalidConfiguration
from ..core.models import (
    DestinationType,
    ProbeForbidden,
    ProbeNotFound,
    ProbeOutcome,
    ProbeSuccess,
    ProbeTransportFailure,
)

BUCKET_DOES_NOT_EXIST = "Bucket does not exist"
ACCESS_DENIED = "Access denied"


def classify(
    outcome: ProbeOutcome,
    destination_type: DestinationType,
    original_config: Any,
    connection_failed_template: str = "{detail}",
) -> Optional[DestinationError]:
    """Return the error for a failed probe, or None when the probe succeeded."""
    if isinstance(outcome, ProbeSuccess):
        return None
    if isinstance(outcome, ProbeNotFound):
        return InvalidConfiguration(destination_type, original_config, (BUCKET_DOES_NOT_EXIST,))
    if isinstance(outcome, ProbeForbidden):
        return AccessDenied(destination_type, original_config, ACCESS_DENIED)
    if isinstance(outcome, ProbeTransportFailure):
        detail = connection_failed_template.format(detail=outcome.detail)
        return ConnectionFailed(destination_type, original_config, detail)
    raise TypeError(f"Unknown probe outcome: {outcome!r}")
