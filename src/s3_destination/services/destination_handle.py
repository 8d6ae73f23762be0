"""
Destination handle: scoped write capability over one validated S3 client.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, BinaryIO, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .key_utils import guess_mime_from_key, normalize_key
from ..core.exceptions import HandleClosedError, S3WriteError
from ..core.models import S3_DESTINATION_TYPE, BucketRef, DestinationType

logger = logging.getLogger(__name__)


class DestinationHandle:
    """
    Write-capable connection to a validated bucket.

    Built only by DestinationFactory after a successful probe, and closed
    by the factory's scope. Owns the client it is given.
    """

    def __init__(self, client: Any, bucket: BucketRef, destination_type: DestinationType = S3_DESTINATION_TYPE):
        self._s3 = client
        self._bucket = bucket
        self._destination_type = destination_type
        self._closed = False
        self._lock = threading.Lock()

    @property
    def bucket(self) -> BucketRef:
        return self._bucket

    @property
    def destination_type(self) -> DestinationType:
        return self._destination_type

    @property
    def closed(self) -> bool:
        return self._closed

    def _client(self) -> Any:
        if self._closed:
            raise HandleClosedError(f"Destination handle for {self._bucket.uri} is closed")
        return self._s3

    def _uri(self, key: str) -> str:
        return f"s3://{self._bucket.name}/{key}"

    def upload_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Write bytes; returns s3 URI."""
        s3 = self._client()
        key = normalize_key(key)
        try:
            kwargs: Dict[str, Any] = {"Bucket": self._bucket.name, "Key": key, "Body": data}
            content_type = content_type or guess_mime_from_key(key)
            if content_type:
                kwargs["ContentType"] = content_type
            s3.put_object(**kwargs)
            logger.info("Wrote bytes", extra={"stage": "s3_put", "key": key, "status": "OK"})
            return self._uri(key)
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 upload_bytes failed", extra={"stage": "s3_put", "key": key}, exc_info=True)
            raise S3WriteError(str(e)) from e

    def upload_json(self, key: str, payload: Dict[str, Any]) -> str:
        """Write JSON to s3://bucket/key; returns s3 URI."""
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        return self.upload_bytes(key, body, "application/json")

    def upload_stream(self, key: str, fileobj: BinaryIO, content_type: Optional[str] = None) -> str:
        """Stream a file-like object (multipart for large bodies); returns s3 URI."""
        s3 = self._client()
        key = normalize_key(key)
        extra: Dict[str, Any] = {}
        content_type = content_type or guess_mime_from_key(key)
        if content_type:
            extra["ContentType"] = content_type
        try:
            s3.upload_fileobj(fileobj, self._bucket.name, key, ExtraArgs=extra or None)
            logger.info("Streamed object", extra={"stage": "s3_upload", "key": key, "status": "OK"})
            return self._uri(key)
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 upload_stream failed", extra={"stage": "s3_upload", "key": key}, exc_info=True)
            raise S3WriteError(str(e)) from e

    def close(self) -> None:
        """Release the underlying client. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._s3.close()
        logger.info("Destination handle released", extra={"stage": "release", "bucket": self._bucket.uri})

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"DestinationHandle({self._bucket.uri}, {state})"
