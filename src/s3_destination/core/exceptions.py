"""
Typed exceptions for operational faults.

Destination failures (bad config, missing bucket, denied access) are returned
as values, see core.errors. These are for misuse and infrastructure faults.
"""

class ConfigError(RuntimeError):
    """Settings missing/invalid."""


class PoolClosedError(RuntimeError):
    """Blocking work submitted to a pool that was already released."""


class HandleClosedError(RuntimeError):
    """Write attempted through a destination handle after its scope ended."""


class S3WriteError(RuntimeError):
    """S3 write/put failures."""
