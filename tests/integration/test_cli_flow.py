import json
import logging
from urllib.parse import parse_qs

import httpx
import pytest
from typer.testing import CliRunner

# Import the app instance from main
from relayrpc.main import app
from relayrpc.infrastructure.config.settings import set_config_for_testing
from relayrpc.infrastructure.transport.http_transport import HttpTransportClient

BASE_ADDRESS = "https://api.example.test/"
ACCOUNT_ID = 76561198000000001
ACCESS_TOKEN = "test-access-token"

ADD_RESPONSE = {
    "status": 1,
    "shared_secret": "c2VjcmV0c2VjcmV0",
    "serial_number": "123456789012",
    "revocation_code": "R12345",
    "server_time": "1700000000",
    "account_name": "user",
}
FINALIZE_RESPONSE = {"success": True, "want_more": False, "server_time": "1700000030", "status": 2}


class FakeTwoFactorApi:
    """httpx.MockTransport handler answering the two-factor endpoints."""

    def __init__(self):
        self.requests = []
        self.failures_before_success = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.requests) <= self.failures_before_success:
            return httpx.Response(503, text="Service Unavailable")
        if request.url.path.endswith("/AddAuthenticator/v1/"):
            return httpx.Response(200, json={"response": ADD_RESPONSE}, headers={"x-eresult": "1"})
        if request.url.path.endswith("/FinalizeAddAuthenticator/v1/"):
            return httpx.Response(200, json={"response": FINALIZE_RESPONSE})
        return httpx.Response(404)

    def form(self, index: int = 0):
        return {key: values[0] for key, values in parse_qs(self.requests[index].content.decode()).items()}


@pytest.fixture
def fake_api(mocker):
    """Routes every HTTP call of the CLI to a FakeTwoFactorApi."""
    api = FakeTwoFactorApi()

    def client_factory(base_address, default_timeout):
        return HttpTransportClient(base_address, default_timeout=default_timeout, http_transport=httpx.MockTransport(api))

    mocker.patch("relayrpc.main.HttpTransportClient", side_effect=client_factory)
    # Keep pytest's log capture in place
    mocker.patch("relayrpc.main.setup_logging")
    return api


@pytest.fixture
def configured_session():
    set_config_for_testing({
        "web.base_address": BASE_ADDRESS,
        "web.limiter_delay": 0,
        "web.max_tries": 3,
        "session.account_id": ACCOUNT_ID,
        "session.access_token": ACCESS_TOKEN,
    })


def test_add_authenticator_flow(runner: CliRunner, fake_api: FakeTwoFactorApi, configured_session, tmp_path):
    """Test the full flow for the 'add-authenticator' command against a fake API."""
    save_path = tmp_path / "authenticator.json"

    result = runner.invoke(app, ["add-authenticator", "--device-id", "android:1234", "--save", str(save_path)])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert len(fake_api.requests) == 1
    request = fake_api.requests[0]
    assert str(request.url) == f"{BASE_ADDRESS}ITwoFactorService/AddAuthenticator/v1/"
    form = fake_api.form()
    assert form["access_token"] == ACCESS_TOKEN
    payload = json.loads(form["input_json"])
    assert payload["steamid"] == str(ACCOUNT_ID)
    assert payload["device_identifier"] == "android:1234"
    assert payload["authenticator_type"] == 1

    # Secrets are masked on screen but saved in full
    assert "c2VjcmV0c2VjcmV0" not in result.stdout
    saved = json.loads(save_path.read_text(encoding="utf-8"))
    assert saved["shared_secret"] == "c2VjcmV0c2VjcmV0"
    assert saved["server_time"] == 1700000000


def test_add_authenticator_retries_then_succeeds(runner: CliRunner, fake_api: FakeTwoFactorApi, configured_session):
    fake_api.failures_before_success = 2

    result = runner.invoke(app, ["add-authenticator", "-d", "android:1234"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert len(fake_api.requests) == 3


def test_add_authenticator_exhausted(runner: CliRunner, fake_api: FakeTwoFactorApi, configured_session, caplog):
    fake_api.failures_before_success = 10

    with caplog.at_level(logging.WARNING):
        result = runner.invoke(app, ["add-authenticator", "-d", "android:1234"])

    assert result.exit_code == 1
    assert len(fake_api.requests) == 3
    assert "failed after 3 attempts" in result.stdout
    assert caplog.text.count("Request failed after 3 attempts!") == 1


def test_add_authenticator_session_not_ready(runner: CliRunner, fake_api: FakeTwoFactorApi, caplog):
    set_config_for_testing({"web.base_address": BASE_ADDRESS, "web.limiter_delay": 0})

    with caplog.at_level(logging.WARNING):
        result = runner.invoke(app, ["add-authenticator", "-d", "android:1234"])

    assert result.exit_code == 1
    assert "Session is not ready" in result.stdout
    assert fake_api.requests == []
    assert [r for r in caplog.records if r.levelno >= logging.WARNING] == []


def test_finalize_authenticator_flow(runner: CliRunner, fake_api: FakeTwoFactorApi, configured_session):
    result = runner.invoke(app, [
        "finalize-authenticator",
        "--activation-code", "ABCDE",
        "--authenticator-code", "12345",
        "--authenticator-time", "1700000030",
    ])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert fake_api.requests[0].url.path == "/ITwoFactorService/FinalizeAddAuthenticator/v1/"
    payload = json.loads(fake_api.form()["input_json"])
    assert payload == {
        "steamid": str(ACCOUNT_ID),
        "activation_code": "ABCDE",
        "authenticator_code": "12345",
        "authenticator_time": "1700000030",
    }


def test_debug_flag_traces_attempts(runner: CliRunner, fake_api: FakeTwoFactorApi, configured_session, caplog):
    fake_api.failures_before_success = 1

    with caplog.at_level(logging.DEBUG):
        result = runner.invoke(app, ["--debug", "add-authenticator", "-d", "android:1234"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    traces = [
        record.getMessage() for record in caplog.records
        if record.name == "relayrpc.invocation" and record.levelno == logging.DEBUG
    ]
    assert traces == [f"POST {BASE_ADDRESS}ITwoFactorService/AddAuthenticator"] * 2


def test_environment_configuration(runner: CliRunner, fake_api: FakeTwoFactorApi, monkeypatch):
    monkeypatch.setenv("RELAYRPC_WEB_BASE_ADDRESS", "https://env.example.test")
    monkeypatch.setenv("RELAYRPC_WEB_LIMITER_DELAY", "0")
    monkeypatch.setenv("RELAYRPC_SESSION_ACCOUNT_ID", str(ACCOUNT_ID))
    monkeypatch.setenv("RELAYRPC_SESSION_ACCESS_TOKEN", "env-token")

    result = runner.invoke(app, ["add-authenticator", "-d", "android:1234"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert str(fake_api.requests[0].url).startswith("https://env.example.test/ITwoFactorService/")
    assert fake_api.form()["access_token"] == "env-token"


def test_show_config_masks_token(runner: CliRunner, fake_api: FakeTwoFactorApi, configured_session):
    result = runner.invoke(app, ["show-config"])

    assert result.exit_code == 0, f"CLI command failed: {result.stdout}"
    assert BASE_ADDRESS in result.stdout
    assert ACCESS_TOKEN not in result.stdout
    assert fake_api.requests == []


def test_invalid_configuration_exits_with_code_2(runner: CliRunner, fake_api: FakeTwoFactorApi):
    set_config_for_testing({"web.max_tries": 0})

    result = runner.invoke(app, ["show-config"])

    assert result.exit_code == 2
    assert "Invalid configuration" in result.stdout
