"""
Orchestrator that turns a raw destination config into a scoped handle or a typed error.

parse -> probe (on the blocking pool) -> classify -> provision, strictly in order.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Union

from botocore.exceptions import BotoCoreError

from ..core.errors import DestinationError, is_destination_error
from ..core.models import S3_DESTINATION_TYPE, Configuration, DestinationType, ProbeTransportFailure
from ..core.settings import Settings
from ..services.blocking_pool import BlockingPool
from ..services.bucket_probe import S3BucketProbe
from ..services.config_parser import parse_config
from ..services.destination_handle import DestinationHandle
from ..services.error_classifier import classify

logger = logging.getLogger(__name__)

BuildResult = Union[DestinationHandle, DestinationError]


def _close_client(client: Any) -> None:
    client.close()


class DestinationFactory:
    """Validates S3 destination configs and provisions handles.

    Holds only immutable collaborators, so concurrent builds are independent.
    """

    def __init__(
        self,
        pool: BlockingPool,
        probe: Optional[S3BucketProbe] = None,
        settings: Optional[Settings] = None,
        destination_type: DestinationType = S3_DESTINATION_TYPE,
    ):
        self._settings = settings or Settings()
        self._pool = pool
        self._probe = probe or S3BucketProbe(self._settings)
        self._destination_type = destination_type

    @property
    def destination_type(self) -> DestinationType:
        return self._destination_type

    @asynccontextmanager
    async def build(self, raw: Any) -> AsyncIterator[BuildResult]:
        """
        Yield a DestinationHandle or a DestinationError.
        The handle is released when the `async with` block exits, however it exits.
        """
        result = await self._provision(raw)
        try:
            yield result
        finally:
            if isinstance(result, DestinationHandle):
                result.close()

    async def validate(self, raw: Any) -> Optional[DestinationError]:
        """Run a full build and release any handle right away."""
        async with self.build(raw) as result:
            return result if is_destination_error(result) else None

    async def _provision(self, raw: Any) -> BuildResult:
        t0 = time.monotonic()
        cfg = parse_config(raw, self._destination_type)
        if not isinstance(cfg, Configuration):
            self._log_outcome(cfg, None, t0)
            return cfg

        try:
            # Session/client creation loads service models from disk
            client = await self._pool.run(self._probe.open_client, cfg, on_abandon=_close_client)
        except BotoCoreError as e:
            # e.g. a region botocore cannot build an endpoint for
            err = classify(
                ProbeTransportFailure(str(e)),
                self._destination_type,
                raw,
                self._settings.connection_failed_template,
            )
            self._log_outcome(err, cfg, t0)
            return err

        try:
            outcome = await self._pool.run(self._probe.check, client, cfg.bucket)
            err = classify(
                outcome,
                self._destination_type,
                raw,
                self._settings.connection_failed_template,
            )
        except BaseException:
            # Cancelled, pool gone or unknown outcome. An in-flight HeadBucket keeps its
            # socket until the botocore connect/read timeout fires; close drops the rest.
            client.close()
            logger.warning(
                "Build aborted",
                extra={"stage": "probe", "bucket": cfg.bucket.uri, "outcome": "aborted"},
            )
            raise

        if err is not None:
            client.close()
            self._log_outcome(err, cfg, t0)
            return err

        handle = DestinationHandle(client, cfg.bucket, self._destination_type)
        self._log_outcome(handle, cfg, t0)
        return handle

    def _log_outcome(self, result: BuildResult, cfg: Optional[Configuration], t0: float) -> None:
        latency_ms = int((time.monotonic() - t0) * 1000)
        extra = {
            "stage": "build",
            "destination_type": f"{self._destination_type.name}/{self._destination_type.version}",
            "bucket": cfg.bucket.uri if cfg else None,
            "latency_ms": latency_ms,
        }
        if isinstance(result, DestinationHandle):
            logger.info("Destination provisioned", extra={**extra, "outcome": "ok"})
        else:
            logger.warning("Destination rejected", extra={**extra, "outcome": "error", "kind": result.kind})
