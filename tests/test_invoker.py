from __future__ import annotations

import logging

import pytest

from vocbridge.exceptions import (
    VocInvocationError,
    VocInvocationFailedError,
    VocInvocationTimeoutError,
    VocTransportError,
)
from vocbridge.invoker import RemoteCommandInvoker
from vocbridge.models import InvocationOutcome, RemoteAction

VIN = "YV1XZ16DCM1234567"


@pytest.mark.asyncio
async def test_invoke_polls_until_successful(cloud, invoker, sleeps) -> None:
    cloud.poll_statuses = ["Started", "MessageDelivered", "Successful"]

    invocation = await invoker.invoke(VIN, RemoteAction.LOCK)

    assert invocation.outcome == InvocationOutcome.SUCCEEDED
    assert invocation.succeeded
    assert invocation.invocation_id == "svc-1"
    assert invocation.attempt_count == 3
    assert cloud.count("poll_invocation") == 3
    # Sleeps happen before every poll, never after the terminal one.
    assert sleeps == [1.0, 1.0, 1.0]


@pytest.mark.asyncio
async def test_invoke_times_out_after_attempt_budget(cloud, invoker, caplog) -> None:
    cloud.poll_statuses = ["Queued"] * 20

    with caplog.at_level(logging.WARNING), pytest.raises(VocInvocationTimeoutError) as excinfo:
        await invoker.invoke(VIN, RemoteAction.START_HEATER)

    invocation = excinfo.value.invocation
    assert invocation is not None
    assert invocation.outcome == InvocationOutcome.TIMED_OUT
    assert not invocation.succeeded
    assert invocation.attempt_count == 15
    assert cloud.count("poll_invocation") == 15
    assert "didn't get a status back in 15 attempts" in caplog.text


@pytest.mark.asyncio
async def test_invoke_stops_on_failed_and_logs_reason(cloud, invoker, caplog) -> None:
    cloud.poll_statuses = ["Started", {"status": "Failed", "failureReason": "CarOffline"}, "Successful"]

    with caplog.at_level(logging.WARNING), pytest.raises(VocInvocationFailedError) as excinfo:
        await invoker.invoke(VIN, RemoteAction.UNLOCK)

    invocation = excinfo.value.invocation
    assert invocation is not None
    assert invocation.outcome == InvocationOutcome.FAILED
    assert invocation.failure_reason == "CarOffline"
    assert invocation.attempt_count == 2
    assert cloud.count("poll_invocation") == 2
    assert "CarOffline" in caplog.text


@pytest.mark.asyncio
async def test_delay_charging_without_service_resolves_immediately(cloud, invoker, sleeps) -> None:
    cloud.submissions = [{"status": "Accepted"}]

    invocation = await invoker.invoke(
        VIN,
        RemoteAction.DELAY_CHARGING,
        {"status": "Accepted"},
        target="12345",
    )

    assert invocation.outcome == InvocationOutcome.SUCCEEDED
    assert invocation.invocation_id is None
    assert cloud.count("poll_invocation") == 0
    assert sleeps == []


@pytest.mark.asyncio
async def test_delay_charging_polls_last_segment_of_service_uri(cloud, invoker) -> None:
    cloud.submissions = [{"service": "https://vocapi.wirelesscar.net/customerapi/rest/v3.0/vehicles/X/services/abc123"}]

    await invoker.invoke(VIN, RemoteAction.DELAY_CHARGING, {}, target="12345")

    assert ("poll_invocation", VIN, "abc123") in cloud.calls


@pytest.mark.asyncio
async def test_missing_invocation_id_is_rejected_without_polling(cloud, invoker) -> None:
    cloud.submissions = [{}]

    with pytest.raises(VocInvocationError) as excinfo:
        await invoker.invoke(VIN, RemoteAction.START_CHARGING)

    assert not isinstance(excinfo.value, (VocInvocationFailedError, VocInvocationTimeoutError))
    assert cloud.count("poll_invocation") == 0


@pytest.mark.asyncio
async def test_submission_error_aborts_without_retry(cloud, invoker) -> None:
    cloud.fail["submit_action"] = VocTransportError("connection reset", endpoint="vehicles/X/lock")

    with pytest.raises(VocInvocationError) as excinfo:
        await invoker.invoke(VIN, RemoteAction.LOCK)

    assert isinstance(excinfo.value.__cause__, VocTransportError)
    assert cloud.count("submit_action") == 1
    assert cloud.count("poll_invocation") == 0


@pytest.mark.asyncio
async def test_poll_error_aborts_invocation(cloud, invoker) -> None:
    cloud.poll_statuses = ["Started", VocTransportError("HTTP 503", status_code=503)]

    with pytest.raises(VocInvocationError) as excinfo:
        await invoker.invoke(VIN, RemoteAction.LOCK)

    assert excinfo.value.invocation is not None
    assert excinfo.value.invocation.outcome == InvocationOutcome.FAILED
    assert cloud.count("poll_invocation") == 2


@pytest.mark.asyncio
async def test_poll_requires_invocation_id(cloud, invoker) -> None:
    with pytest.raises(ValueError):
        await invoker.poll(VIN, None, RemoteAction.LOCK)
    assert cloud.count("poll_invocation") == 0


@pytest.mark.asyncio
async def test_custom_attempt_budget(cloud, sleeps) -> None:
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    invoker = RemoteCommandInvoker(cloud, poll_interval=0.5, poll_attempts=3, sleep=_sleep)
    cloud.poll_statuses = ["Started"] * 5

    with pytest.raises(VocInvocationTimeoutError):
        await invoker.invoke(VIN, RemoteAction.LOCK)

    assert sleeps == [0.5, 0.5, 0.5]
