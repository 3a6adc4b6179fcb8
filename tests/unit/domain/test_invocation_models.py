import dataclasses

import pytest

from relayrpc.domain.models.common import EndpointName, HttpMethod, ServiceName
from relayrpc.domain.models.invocation import InvocationOutcome, OperationDescriptor, OutcomeStatus
from relayrpc.domain.models.two_factor import AddAuthenticatorRequest, AddAuthenticatorResponse

REQUEST = AddAuthenticatorRequest(steamid=1, authenticator_time=2, device_identifier="device")


def make_descriptor(**overrides):
    values = dict(
        service=ServiceName("ITwoFactorService"),
        endpoint=EndpointName("AddAuthenticator"),
        method=HttpMethod.POST,
        request=REQUEST,
        response_type=AddAuthenticatorResponse,
    )
    values.update(overrides)
    return OperationDescriptor(**values)


def test_descriptor_defaults():
    descriptor = make_descriptor()

    assert descriptor.path == "ITwoFactorService/AddAuthenticator"
    assert descriptor.credential_argument == "access_token"
    assert descriptor.version == 1
    assert dict(descriptor.arguments) == {}


def test_descriptor_coerces_method_string():
    assert make_descriptor(method="GET").method is HttpMethod.GET


def test_descriptor_is_immutable():
    descriptor = make_descriptor(arguments={"language": "english"})

    with pytest.raises(dataclasses.FrozenInstanceError):
        descriptor.endpoint = "Other"
    with pytest.raises(TypeError):
        descriptor.arguments["language"] = "german"


def test_descriptor_copies_caller_arguments():
    arguments = {"language": "english"}
    descriptor = make_descriptor(arguments=arguments)

    arguments["language"] = "german"

    assert descriptor.arguments["language"] == "english"


def test_with_argument_returns_new_descriptor():
    descriptor = make_descriptor(arguments={"language": "english"})

    with_token = descriptor.with_argument("access_token", "secret")

    assert dict(with_token.arguments) == {"language": "english", "access_token": "secret"}
    assert "access_token" not in descriptor.arguments
    assert with_token.request is descriptor.request


def test_equal_descriptors_hash_equal():
    first = make_descriptor(arguments={"language": "english", "format": "json"})
    second = make_descriptor(arguments={"format": "json", "language": "english"})

    assert first == second
    assert hash(first) == hash(second)
    assert {first: "cached"}[second] == "cached"
    assert len({first, second, first.with_argument("access_token", "secret")}) == 2


@pytest.mark.parametrize("overrides", [
    {"service": ""},
    {"endpoint": ""},
    {"credential_argument": ""},
    {"version": 0},
    {"method": "DELETE"},
])
def test_descriptor_validation(overrides):
    with pytest.raises(ValueError):
        make_descriptor(**overrides)


def test_outcome_constructors():
    body = AddAuthenticatorResponse(status=1)

    success = InvocationOutcome.success(body, attempts=2)
    unavailable = InvocationOutcome.unavailable()
    exhausted = InvocationOutcome.exhausted(5)

    assert success.status is OutcomeStatus.SUCCESS and success.succeeded and success.body is body
    assert unavailable.is_unavailable and unavailable.attempts == 0 and unavailable.body is None
    assert exhausted.is_exhausted and exhausted.attempts == 5 and not exhausted.succeeded
