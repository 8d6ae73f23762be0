"""
Lambda entrypoint that validates an S3 destination configuration.

- Accepts the config as `event["config"]` or as the event itself
- Probes the bucket once on the process-wide blocking pool
- Returns a JSON-friendly verdict with credentials redacted

Environment: see core.settings for optional variables.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from ..core.errors import DestinationError, error_reasons, is_destination_error
from ..core.logging_config import setup_logging
from ..core.settings import Settings
from ..orchestrators.destination_factory import DestinationFactory
from ..services.blocking_pool import acquire_shared_pool
from ..services.config_parser import sanitize_config

setup_logging()
logger = logging.getLogger(__name__)

_settings = Settings.from_env()
_factory = DestinationFactory(acquire_shared_pool(_settings), settings=_settings)


def describe_error(err: DestinationError) -> Dict[str, Any]:
    """Render any destination error as a dict safe to return to callers."""
    return {
        "status": "error",
        "kind": err.kind,
        "destination_type": err.destination_type.as_dict(),
        "reasons": list(error_reasons(err)),
        "config": sanitize_config(err.original_config),
    }


def _extract_config(event: Any) -> Any:
    if isinstance(event, dict) and "config" in event:
        return event["config"]
    return event


async def _validate(raw: Any) -> Dict[str, Any]:
    async with _factory.build(raw) as result:
        if is_destination_error(result):
            return describe_error(result)
        return {
            "status": "ok",
            "destination_type": result.destination_type.as_dict(),
            "bucket": result.bucket.uri,
        }


def handler(event: Any, _context: Any) -> Dict[str, Any]:
    """
    AWS Lambda handler.
    Destination errors are part of the response; only infrastructure faults raise.
    """
    try:
        return asyncio.run(_validate(_extract_config(event)))
    except Exception:  # noqa: BLE001
        logger.error("Unhandled error in destination validation", extra={"stage": "validate"}, exc_info=True)
        raise
