"""
Immutable data model: destination identity, parsed configuration, probe outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class DestinationType:
    name: str
    version: int

    def as_dict(self) -> dict:
        return {"name": self.name, "version": self.version}


S3_DESTINATION_TYPE = DestinationType("s3", 1)


@dataclass(frozen=True)
class Credentials:
    access_key: str
    secret_key: str = field(repr=False)
    region: Optional[str] = None


@dataclass(frozen=True)
class BucketRef:
    """A bucket resolved from its URL: name plus where to reach it."""
    url: str
    name: str
    endpoint_url: Optional[str] = None  # None means the default AWS endpoint
    region: Optional[str] = None

    @property
    def uri(self) -> str:
        return f"s3://{self.name}"


@dataclass(frozen=True)
class Configuration:
    bucket: BucketRef
    credentials: Credentials

    @property
    def region(self) -> Optional[str]:
        return self.credentials.region or self.bucket.region


@dataclass(frozen=True)
class ProbeSuccess:
    """Bucket exists and the credentials may access it."""


@dataclass(frozen=True)
class ProbeNotFound:
    """Bucket does not exist."""


@dataclass(frozen=True)
class ProbeForbidden:
    """Credentials rejected by the storage service."""


@dataclass(frozen=True)
class ProbeTransportFailure:
    """DNS, timeout, malformed response or any other non-semantic failure."""
    detail: str


ProbeOutcome = Union[ProbeSuccess, ProbeNotFound, ProbeForbidden, ProbeTransportFailure]
