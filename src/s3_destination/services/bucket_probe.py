"""
Bucket probe: one HeadBucket request to check existence and access.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..core.models import (
    BucketRef,
    Configuration,
    Credentials,
    ProbeForbidden,
    ProbeNotFound,
    ProbeOutcome,
    ProbeSuccess,
    ProbeTransportFailure,
)
from ..core.settings import Settings

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset({"404", "NoSuchBucket", "NotFound"})
FORBIDDEN_CODES = frozenset(
    {
        "403",
        "AccessDenied",
        "Forbidden",
        "InvalidAccessKeyId",
        "SignatureDoesNotMatch",
        "InvalidToken",
        "ExpiredToken",
    }
)


def outcome_from_client_error(e: ClientError) -> ProbeOutcome:
    """Map a botocore ClientError onto a probe outcome using error code, then HTTP status."""
    code = str((e.response.get("Error") or {}).get("Code", ""))
    status = str((e.response.get("ResponseMetadata") or {}).get("HTTPStatusCode", ""))
    if code in NOT_FOUND_CODES or (not code and status == "404"):
        return ProbeNotFound()
    if code in FORBIDDEN_CODES or (not code and status == "403"):
        return ProbeForbidden()
    # HeadBucket responses carry no body, so the code is frequently just the status
    if status == "404":
        return ProbeNotFound()
    if status == "403":
        return ProbeForbidden()
    return ProbeTransportFailure(str(e))


class S3BucketProbe:
    """
    Checks a bucket with a dedicated client per attempt.

    `probe` is the self-contained check. The factory uses `open_client` and
    `check` separately so the client can be closed from outside a blocked
    worker thread when the attempt is cancelled.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or Settings()

    def _botocore_config(self, bucket: BucketRef) -> Config:
        s = self._settings
        kwargs: dict = {
            "connect_timeout": s.connect_timeout_seconds,
            "read_timeout": s.read_timeout_seconds,
            # total_max_attempts counts the first request; botocore's max_attempts does not
            "retries": {"total_max_attempts": s.max_attempts, "mode": "standard"},
        }
        if bucket.endpoint_url:
            kwargs["s3"] = {"addressing_style": "path"}
        return Config(**kwargs)

    def open_client(self, config: Configuration) -> Any:
        """Create a boto3 S3 client bound to this configuration's credentials and endpoint."""
        creds = config.credentials
        session = boto3.session.Session(
            aws_access_key_id=creds.access_key,
            aws_secret_access_key=creds.secret_key,
            region_name=config.region or self._settings.default_region,
        )
        return session.client(
            "s3",
            endpoint_url=config.bucket.endpoint_url,
            config=self._botocore_config(config.bucket),
        )

    def check(self, client: Any, bucket: BucketRef) -> ProbeOutcome:
        """Issue exactly one HeadBucket request. Blocking."""
        try:
            client.head_bucket(Bucket=bucket.name)
            outcome: ProbeOutcome = ProbeSuccess()
        except ClientError as e:
            outcome = outcome_from_client_error(e)
        except BotoCoreError as e:
            outcome = ProbeTransportFailure(str(e))
        logger.info(
            "Probed bucket",
            extra={"stage": "probe", "bucket": bucket.uri, "outcome": type(outcome).__name__},
        )
        return outcome

    def probe(self, bucket: BucketRef, credentials: Credentials) -> ProbeOutcome:
        """Open a client, check the bucket once, release the client."""
        client = self.open_client(Configuration(bucket=bucket, credentials=credentials))
        try:
            return self.check(client, bucket)
        finally:
            client.close()
