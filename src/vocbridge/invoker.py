"""Remote action submission and service invocation polling.

A remote action is a two-phase exchange with the cloud:

1. the action is submitted once and the cloud answers with a service
   invocation handle (or, for charge location updates that already match
   the cloud state, with no handle at all);
2. the handle is polled at a fixed interval until the cloud reports a
   terminal status or the attempt budget runs out.

The invoker never touches cached vehicle state. Callers decide what to
refresh once an invocation succeeded.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from vocbridge._constants import POLL_ATTEMPTS, POLL_INTERVAL_SECONDS
from vocbridge.client import CloudApi
from vocbridge.exceptions import (
    VocError,
    VocInvocationError,
    VocInvocationFailedError,
    VocInvocationTimeoutError,
)
from vocbridge.models.service import (
    InvocationOutcome,
    PendingInvocation,
    RemoteAction,
    ServiceState,
)

_logger = logging.getLogger(__name__)

# Actions whose submission may resolve without a service invocation.
_IMMEDIATE_RESULT_ACTIONS: frozenset[RemoteAction] = frozenset({RemoteAction.DELAY_CHARGING})


class RemoteCommandInvoker:
    """Issue a remote action and wait for its terminal status.

    Parameters
    ----------
    api : CloudApi
        Cloud client used for submission and polling.
    poll_interval : float
        Seconds slept before every poll.
    poll_attempts : int
        Maximum number of polls before giving up.
    sleep : callable
        Awaitable sleep, injectable so tests run without real delays.
    """

    def __init__(
        self,
        api: CloudApi,
        *,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        poll_attempts: int = POLL_ATTEMPTS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._api = api
        self._poll_interval = poll_interval
        self._poll_attempts = poll_attempts
        self._sleep = sleep

    async def invoke(
        self,
        vehicle_id: str,
        action: RemoteAction,
        payload: Mapping[str, Any] | None = None,
        *,
        target: str | None = None,
    ) -> PendingInvocation:
        """Submit *action* and poll until it resolves.

        Returns
        -------
        PendingInvocation
            The resolved invocation; its outcome is ``SUCCEEDED``.

        Raises
        ------
        VocInvocationFailedError
            The cloud reported ``Failed``.
        VocInvocationTimeoutError
            No terminal status within the attempt budget.
        VocInvocationError
            Submission or polling failed, or the cloud returned no
            invocation id for an action that must be polled.
        """
        invocation = PendingInvocation(vehicle_id=vehicle_id, action=action)

        try:
            submission = await self._api.submit_action(vehicle_id, action, payload, target=target)
        except VocError as exc:
            invocation.outcome = InvocationOutcome.FAILED
            invocation.failure_reason = str(exc)
            raise VocInvocationError(
                f"{action} for {vehicle_id} could not be submitted: {exc}",
                invocation=invocation,
            ) from exc

        invocation.invocation_id = submission.invocation_id
        invocation.result = submission.raw

        if invocation.invocation_id is None:
            if action in _IMMEDIATE_RESULT_ACTIONS:
                # The cloud already holds the requested state. Accepted as-is,
                # without reading the state back.
                _logger.debug("%s for %s resolved immediately: %s", action, vehicle_id, submission.raw)
                invocation.outcome = InvocationOutcome.SUCCEEDED
                return invocation
            invocation.outcome = InvocationOutcome.FAILED
            invocation.failure_reason = "no service invocation id"
            raise VocInvocationError(
                f"{action} for {vehicle_id} returned no service invocation id",
                invocation=invocation,
            )

        return await self._await_terminal(invocation)

    async def poll(self, vehicle_id: str, invocation_id: str | None, action: RemoteAction) -> PendingInvocation:
        """Poll an already submitted invocation until it resolves."""
        if not invocation_id:
            raise ValueError("invocation_id is required to poll a service invocation")
        invocation = PendingInvocation(vehicle_id=vehicle_id, action=action, invocation_id=invocation_id)
        return await self._await_terminal(invocation)

    async def _await_terminal(self, invocation: PendingInvocation) -> PendingInvocation:
        assert invocation.invocation_id is not None  # noqa: S101

        while invocation.attempt_count < self._poll_attempts:
            invocation.attempt_count += 1
            await self._sleep(self._poll_interval)

            try:
                status = await self._api.poll_invocation(invocation.vehicle_id, invocation.invocation_id)
            except VocError as exc:
                invocation.outcome = InvocationOutcome.FAILED
                invocation.failure_reason = str(exc)
                raise VocInvocationError(
                    f"{invocation.action} for {invocation.vehicle_id} poll failed: {exc}",
                    invocation=invocation,
                ) from exc

            _logger.debug(
                "Service invocation %s (%s) attempt=%d status=%r failure_reason=%r",
                invocation.invocation_id,
                invocation.action,
                invocation.attempt_count,
                status.status,
                status.failure_reason,
            )
            invocation.result = status.raw

            state = status.state
            if state == ServiceState.SUCCESSFUL:
                invocation.outcome = InvocationOutcome.SUCCEEDED
                return invocation
            if state == ServiceState.FAILED:
                invocation.outcome = InvocationOutcome.FAILED
                invocation.failure_reason = status.failure_reason
                _logger.warning(
                    "Service invocation %s (%s) for %s failed, reason: %s",
                    invocation.invocation_id,
                    invocation.action,
                    invocation.vehicle_id,
                    status.failure_reason or "none",
                )
                raise VocInvocationFailedError(
                    f"{invocation.action} for {invocation.vehicle_id} failed: {status.failure_reason or 'no reason given'}",
                    invocation=invocation,
                )

        invocation.outcome = InvocationOutcome.TIMED_OUT
        _logger.warning(
            "Service invocation %s (%s) for %s didn't get a status back in %d attempts",
            invocation.invocation_id,
            invocation.action,
            invocation.vehicle_id,
            invocation.attempt_count,
        )
        raise VocInvocationTimeoutError(
            f"{invocation.action} for {invocation.vehicle_id} timed out after {invocation.attempt_count} attempts",
            invocation=invocation,
        )
