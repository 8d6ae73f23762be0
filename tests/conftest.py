"""
Pytest configuration and fakes for the destination bootstrapper tests.

Fakes stand in for the boto3 client so most tests never touch the network. The
fake probe counts open clients to assert nothing leaks; SilentEndpoint is a
loopback listener for exercising real botocore timeouts.
"""
from __future__ import annotations

import socket
import threading
import time
from typing import Any, Dict, List, Optional

import pytest

from s3_destination.core.models import BucketRef, Configuration, ProbeOutcome, ProbeSuccess
from s3_destination.core.settings import Settings
from s3_destination.services.blocking_pool import BlockingPool

TEST_BUCKET = "https://slamdata-public-test.s3.amazonaws.com"
NON_EXISTENT_BUCKET = "https://slamdata-public-test-does-not-exist.s3.amazonaws.com"


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeClient:
    """Minimal S3 client double: records writes, signals on close."""

    def __init__(self, probe: "FakeProbe") -> None:
        self._probe = probe
        self.closed = threading.Event()
        self.puts: List[Dict[str, Any]] = []
        self.streams: List[Dict[str, Any]] = []

    def put_object(self, **kwargs: Any) -> dict:
        self.puts.append(kwargs)
        return {}

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None) -> None:
        self.streams.append({"bucket": bucket, "key": key, "body": fileobj.read(), "extra": ExtraArgs})

    def close(self) -> None:
        if not self.closed.is_set():
            self.closed.set()
            self._probe.release(self)


class FakeProbe:
    """
    Scripted probe.

    `block=True` holds `check` until `finish` is set, whether or not its client
    was closed, the way a real in-flight request waits for its read timeout.
    `hold_open=True` holds `open_client` the same way.
    """

    def __init__(self, outcome: ProbeOutcome = ProbeSuccess(), block: bool = False, hold_open: bool = False) -> None:
        self.outcome = outcome
        self.block = block
        self.hold_open = hold_open
        self.checks = 0
        self.opened = 0
        self.open_clients: List[FakeClient] = []
        self.started = threading.Event()
        self.opening = threading.Event()
        self.finish = threading.Event()
        self.returned = threading.Event()
        self._lock = threading.Lock()

    def open_client(self, config: Configuration) -> FakeClient:
        self.opening.set()
        if self.hold_open:
            self.finish.wait(timeout=5)
        client = FakeClient(self)
        with self._lock:
            self.opened += 1
            self.open_clients.append(client)
        return client

    def release(self, client: FakeClient) -> None:
        with self._lock:
            self.open_clients.remove(client)

    def check(self, client: FakeClient, bucket: BucketRef) -> ProbeOutcome:
        with self._lock:
            self.checks += 1
        self.started.set()
        if self.block:
            self.finish.wait(timeout=5)
        self.returned.set()
        return self.outcome


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def pool():
    with BlockingPool(max_workers=4, name="test-pool") as p:
        yield p


@pytest.fixture
def credentials() -> Dict[str, str]:
    return {"accessKey": "AKIDEXAMPLE", "secretKey": "wJalrXUtnFEMI/K7MDENG", "region": "us-east-1"}


@pytest.fixture
def config_with(credentials):
    def _make(bucket: str) -> Dict[str, Any]:
        return {"bucket": bucket, "credentials": dict(credentials)}
    return _make


class SilentEndpoint:
    """Local TCP listener that accepts requests and never answers them."""

    def __init__(self) -> None:
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(8)
        self._sock.settimeout(10)
        self.port = self._sock.getsockname()[1]
        self.received = threading.Event()
        self.hung_up = threading.Event()
        self.hung_up_at: Optional[float] = None
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    def _serve(self) -> None:
        try:
            conn, _ = self._sock.accept()
        except OSError:
            return
        with conn:
            try:
                while True:
                    data = conn.recv(4096)
                    if not data:
                        break
                    self.received.set()
            except OSError:
                pass
        self.hung_up_at = time.monotonic()
        self.hung_up.set()

    def close(self) -> None:
        self._sock.close()


@pytest.fixture
def silent_endpoint():
    ep = SilentEndpoint()
    yield ep
    ep.close()
