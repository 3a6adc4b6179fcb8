import asyncio
import os
from typing import Any, List, Mapping, Optional, Sequence

import pytest
from typer.testing import CliRunner

from relayrpc.domain.interfaces.diagnostics import Diagnostics
from relayrpc.domain.interfaces.rate_limiter import RateLimiter
from relayrpc.domain.interfaces.transport import ServiceInterface, TransportClient
from relayrpc.domain.models.errors import TransportError
from relayrpc.infrastructure.config import settings
from relayrpc.infrastructure.config.settings import ENV_PREFIX, clear_test_config
from relayrpc.infrastructure.session.static_session import StaticSession
from relayrpc.main import reset_dependencies

TEST_BASE_ADDRESS = "https://api.example.test/"
TEST_ACCOUNT_ID = 76561198000000001
TEST_ACCESS_TOKEN = "test-access-token"


class RecordingDiagnostics(Diagnostics):
    """Keeps every diagnostic as a (level, message or exception) pair."""

    def __init__(self):
        self.records: List[tuple] = []

    def debug(self, message: str) -> None:
        self.records.append(("debug", message))

    def warning(self, message: str) -> None:
        self.records.append(("warning", message))

    def debug_exception(self, exception: BaseException, context: Optional[str] = None) -> None:
        self.records.append(("debug", exception))

    def warning_exception(self, exception: BaseException, context: Optional[str] = None) -> None:
        self.records.append(("warning", exception))

    def at(self, level: str) -> List[Any]:
        return [entry for record_level, entry in self.records if record_level == level]


class InFlightTracker:
    """Counts overlapping transport calls."""

    def __init__(self):
        self.current = 0
        self.peak = 0
        self.start_times: List[float] = []

    def enter(self) -> None:
        self.current += 1
        self.peak = max(self.peak, self.current)
        self.start_times.append(asyncio.get_running_loop().time())

    def exit(self) -> None:
        self.current -= 1


class ScriptedServiceInterface(ServiceInterface):
    """Returns or raises the scripted outcomes in order, one per call."""

    def __init__(self, script: Sequence[Any], latency: float = 0.0, tracker: Optional[InFlightTracker] = None):
        self._script = list(script)
        self.latency = latency
        self.tracker = tracker
        self.calls: List[dict] = []
        self.closed = False
        self._timeout = 0.0

    @property
    def timeout(self) -> float:
        return self._timeout

    @timeout.setter
    def timeout(self, value: float) -> None:
        self._timeout = value

    async def call(self, method, endpoint, request, response_type,
                   arguments: Optional[Mapping[str, str]] = None, version: int = 1):
        self.calls.append({
            "method": method,
            "endpoint": endpoint,
            "request": request,
            "response_type": response_type,
            "arguments": dict(arguments or {}),
            "version": version,
        })
        if self.tracker is not None:
            self.tracker.enter()
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
        finally:
            if self.tracker is not None:
                self.tracker.exit()
        outcome = self._script.pop(0) if self._script else TransportError("no scripted outcome left")
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True


class ScriptedTransport(TransportClient):
    """Hands every new interface its own copy of the script."""

    def __init__(self, script: Sequence[Any] = (), base_address: str = TEST_BASE_ADDRESS,
                 latency: float = 0.0, tracker: Optional[InFlightTracker] = None):
        self.script = list(script)
        self._base_address = base_address
        self.latency = latency
        self.tracker = tracker
        self.interfaces: List[ScriptedServiceInterface] = []
        self.requested_services: List[str] = []

    @property
    def base_address(self) -> str:
        return self._base_address

    def get_interface(self, service):
        self.requested_services.append(service)
        interface = ScriptedServiceInterface(self.script, latency=self.latency, tracker=self.tracker)
        self.interfaces.append(interface)
        return interface

    @property
    def calls(self) -> List[dict]:
        return [call for interface in self.interfaces for call in interface.calls]


class RecordingLimiter(RateLimiter):
    """Runs every operation immediately and records the keys used."""

    def __init__(self):
        self.keys: List[str] = []

    async def run_under_limit(self, key, operation):
        self.keys.append(key)
        return await operation()


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def diagnostics():
    return RecordingDiagnostics()


@pytest.fixture
def diagnostics_factory():
    return RecordingDiagnostics


@pytest.fixture
def recording_limiter():
    return RecordingLimiter()


@pytest.fixture
def transport_factory():
    """Builds ScriptedTransport instances: transport_factory(script, latency=..., tracker=...)."""
    def factory(script: Sequence[Any] = (), **kwargs: Any) -> ScriptedTransport:
        return ScriptedTransport(script, **kwargs)
    return factory


@pytest.fixture
def in_flight_tracker():
    return InFlightTracker()


@pytest.fixture
def ready_session():
    return StaticSession(account_id=TEST_ACCOUNT_ID, access_token=TEST_ACCESS_TOKEN)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keeps tests independent of the developer's environment and config files."""
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings, "DEFAULT_CONFIG_FILE", tmp_path / "missing.yaml")
    monkeypatch.setattr(settings, "_config", {})
    monkeypatch.setattr(settings, "_loaded", False)
    monkeypatch.chdir(tmp_path)
    clear_test_config()
    reset_dependencies()
    yield
    clear_test_config()
    reset_dependencies()
