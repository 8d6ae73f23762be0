"""
Configuration parsing: raw JSON/mapping -> typed Configuration.

Pure shape validation, never touches the network. Every failure is a
MalformedConfiguration value carrying a stable literal reason.
"""

from __future__ import annotations

import copy
import json
import re
from typing import Any, Mapping, Optional, Tuple, Union
from urllib.parse import urlsplit

from ..core.errors import MalformedConfiguration
from ..core.models import S3_DESTINATION_TYPE, BucketRef, Configuration, Credentials, DestinationType

REDACTED = "<REDACTED>"

_TOP_LEVEL_FIELDS = ("bucket", "credentials")
_CREDENTIAL_FIELDS = ("accessKey", "secretKey", "region")
_SECRET_FIELDS = ("accessKey", "secretKey")

# <bucket>.s3.amazonaws.com, <bucket>.s3.<region>.amazonaws.com, <bucket>.s3-<region>.amazonaws.com
_VIRTUAL_HOSTED = re.compile(
    r"^(?P<bucket>.+)\.s3(?:[.-](?P<region>[a-z0-9-]+))?\.amazonaws\.com(?:\.cn)?$"
)


class _Malformed(Exception):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def _load(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise _Malformed("Configuration is not valid JSON") from e
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise _Malformed("Configuration is not valid JSON") from e
    if not isinstance(raw, Mapping):
        raise _Malformed("Configuration must be an object")
    return raw


def _reject_unknown(obj: Mapping[str, Any], allowed: Tuple[str, ...], prefix: str = "") -> None:
    for k in obj:
        if k not in allowed:
            raise _Malformed(f"Unexpected field: {prefix}{k}")


def resolve_bucket(url: str) -> BucketRef:
    """
    Derive bucket name/endpoint from a bucket URL.
    Virtual-hosted AWS URLs use the default endpoint; anything else is path style.
    """
    try:
        parts = urlsplit(url)
        host = parts.hostname
        _ = parts.port  # raises ValueError on a non-numeric port
    except ValueError as e:
        raise _Malformed("Field 'bucket' is not a valid URL") from e
    if parts.scheme not in ("http", "https") or not host:
        raise _Malformed("Field 'bucket' is not a valid URL")

    m = _VIRTUAL_HOSTED.match(host)
    if m:
        return BucketRef(url=url, name=m.group("bucket"), region=m.group("region"))

    name = parts.path.strip("/").split("/", 1)[0]
    if not name:
        raise _Malformed("Field 'bucket' does not name a bucket")
    return BucketRef(url=url, name=name, endpoint_url=f"{parts.scheme}://{parts.netloc}")


def _credentials(obj: Any) -> Credentials:
    if not isinstance(obj, Mapping):
        raise _Malformed("Field 'credentials' must be an object")
    _reject_unknown(obj, _CREDENTIAL_FIELDS, prefix="credentials.")

    def req(k: str) -> str:
        if k not in obj:
            raise _Malformed(f"Missing required field: credentials.{k}")
        v = obj[k]
        if not isinstance(v, str) or not v:
            raise _Malformed(f"Field 'credentials.{k}' must be a non-empty string")
        return v

    access_key = req("accessKey")
    secret_key = req("secretKey")
    region = obj.get("region")
    if region is not None and not isinstance(region, str):
        raise _Malformed("Field 'credentials.region' must be a string")
    return Credentials(access_key=access_key, secret_key=secret_key, region=region or None)


def parse_config(
    raw: Any, destination_type: DestinationType = S3_DESTINATION_TYPE
) -> Union[Configuration, MalformedConfiguration]:
    """Validate shape and return a Configuration, or MalformedConfiguration on the first violation."""
    try:
        obj = _load(raw)
        for k in _TOP_LEVEL_FIELDS:
            if k not in obj:
                raise _Malformed(f"Missing required field: {k}")
        _reject_unknown(obj, _TOP_LEVEL_FIELDS)
        bucket = obj["bucket"]
        if not isinstance(bucket, str):
            raise _Malformed("Field 'bucket' must be a string")
        creds = _credentials(obj["credentials"])
        return Configuration(bucket=resolve_bucket(bucket), credentials=creds)
    except _Malformed as e:
        return MalformedConfiguration(destination_type, raw, e.reason)


def sanitize_config(raw: Any) -> Any:
    """Copy of the config with secrets replaced; non-mapping input is returned as a placeholder."""
    try:
        obj = _load(raw)
    except _Malformed:
        return REDACTED if raw is not None else None
    out = copy.deepcopy(dict(obj))
    creds: Optional[Any] = out.get("credentials")
    if isinstance(creds, Mapping):
        creds = dict(creds)
        for k in _SECRET_FIELDS:
            if k in creds:
                creds[k] = REDACTED
        out["credentials"] = creds
    elif "credentials" in out:
        out["credentials"] = REDACTED
    return out
