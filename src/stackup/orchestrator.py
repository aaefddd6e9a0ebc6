"""Stack lifecycle state machine.

Every mutating operation runs through ``modify_stack``: zero an event
watcher, issue the call, then poll (relaying new events) until the stack
status is terminal. Expected lifecycle conditions (no update needed, nothing
to cancel, no such stack) are turned into ``StackResult`` values here and
never reach the caller as exceptions.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from .config import StackupConfig
from .error_mapping import ErrorMappingProxy
from .exceptions import (
    InvalidStateError,
    NoSuchStack,
    NoUpdateRequired,
    StackUpdateError,
    StackWaitTimeout,
)
from .models import (
    ALMOST_DEAD_STATUSES,
    ChangeRequest,
    StackEvent,
    StackResult,
    is_terminal,
)
from .watcher import EventWatcher

logger = logging.getLogger(__name__)

EventHandler = Callable[[StackEvent], Any]


def log_event(event: StackEvent) -> None:
    """Default event handler: log ``logical_id - status - reason``."""
    logger.info(event.summary())


class LifecycleOrchestrator:
    """
    Sequences create/update/delete/cancel calls for one stack.

    Attributes:
        stack_name: Stack the orchestrator manages
        stack_id: Provider id, pinned only while a delete is in flight
    """

    def __init__(
        self,
        stack_name: str,
        client: Any,
        config: StackupConfig | None = None,
        event_handler: EventHandler | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            stack_name: CloudFormation stack name
            client: boto3 CloudFormation client (raw or already error-mapped)
            config: Poll interval, timeout and default capabilities
            event_handler: Called once per new stack event (default: log it)
            sleep: Sleep function used between polls
            clock: Monotonic clock used for the optional timeout
        """
        if not isinstance(client, ErrorMappingProxy):
            client = ErrorMappingProxy(client, stack_name)
        self.stack_name = stack_name
        self.config = config or StackupConfig()
        self.event_handler: EventHandler = event_handler or log_event
        self.stack_id: str | None = None
        self._cfn = client
        self._sleep = sleep
        self._clock = clock

    @property
    def target(self) -> str:
        """Stack id if pinned, else the stack name."""
        return self.stack_id or self.stack_name

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------

    def describe(self) -> dict[str, Any]:
        """
        Describe the stack.

        Raises:
            NoSuchStack: If the stack does not exist
        """
        response = self._cfn.describe_stacks(StackName=self.target)
        stacks = response.get("Stacks", [])
        if not stacks:
            raise NoSuchStack(self.stack_name)
        return dict(stacks[0])

    def status(self) -> str | None:
        """Current stack status, or None if the stack does not exist."""
        try:
            return self.describe().get("StackStatus")
        except NoSuchStack:
            return None

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------

    def create_or_update(self, request: ChangeRequest) -> StackResult:
        """
        Bring the stack in line with ``request``.

        A stack in an almost-dead status (``CREATE_FAILED``,
        ``ROLLBACK_COMPLETE``) can only be deleted, so it is deleted and
        recreated. Otherwise an update is attempted, falling back to create
        if the stack turns out not to exist.

        Returns:
            ``CREATED``, ``UPDATED`` or ``UNCHANGED``

        Raises:
            StackUpdateError: If the operation ends in a failure status
        """
        status = self.status()
        if status in ALMOST_DEAD_STATUSES:
            logger.info("Stack %s is %s; deleting before re-creating", self.stack_name, status)
            self.delete()
            return self._create(request)
        if status is None:
            return self._create(request)
        try:
            return self._update(request)
        except NoSuchStack:
            return self._create(request)

    def delete(self) -> StackResult:
        """
        Delete the stack.

        Returns:
            ``DELETED``, or ``NOOP`` if the stack does not exist

        Raises:
            StackUpdateError: If the delete does not reach ``DELETE_COMPLETE``
        """
        try:
            self.stack_id = self.describe()["StackId"]
        except NoSuchStack:
            return StackResult.NOOP
        try:
            status = self.modify_stack(
                lambda: self._cfn.delete_stack(StackName=self.target)
            )
            if status != "DELETE_COMPLETE":
                raise StackUpdateError("delete", self.stack_name, status)
            return StackResult.DELETED
        finally:
            self.stack_id = None

    def cancel_update(self) -> StackResult:
        """
        Cancel an update in progress.

        Returns:
            ``CANCELLED``, or ``NOOP`` if there was nothing to cancel

        Raises:
            StackUpdateError: If the stack does not settle in a ``_COMPLETE`` status
        """
        try:
            status = self.modify_stack(
                lambda: self._cfn.cancel_update_stack(StackName=self.target)
            )
        except (InvalidStateError, NoSuchStack):
            return StackResult.NOOP
        if status is None or not status.endswith("_COMPLETE"):
            raise StackUpdateError("cancel", self.stack_name, status)
        return StackResult.CANCELLED

    def wait(self) -> str | None:
        """Poll, relaying events, until the stack is in a terminal status."""
        return self.modify_stack(None)

    def _create(self, request: ChangeRequest) -> StackResult:
        kwargs = self._with_default_capabilities(request.create_arguments(self.stack_name))
        status = self.modify_stack(lambda: self._cfn.create_stack(**kwargs))
        if status != "CREATE_COMPLETE":
            raise StackUpdateError("create", self.stack_name, status)
        return StackResult.CREATED

    def _update(self, request: ChangeRequest) -> StackResult:
        kwargs = self._with_default_capabilities(request.update_arguments(self.stack_name))
        try:
            status = self.modify_stack(lambda: self._cfn.update_stack(**kwargs))
        except NoUpdateRequired:
            logger.info("No changes to stack %s", self.stack_name)
            return StackResult.UNCHANGED
        if status != "UPDATE_COMPLETE":
            raise StackUpdateError("update", self.stack_name, status)
        return StackResult.UPDATED

    def _with_default_capabilities(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        if not kwargs.get("Capabilities"):
            kwargs["Capabilities"] = list(self.config.capabilities)
        return kwargs

    # -------------------------------------------------------------------
    # Poll loop
    # -------------------------------------------------------------------

    def modify_stack(self, action: Callable[[], Any] | None) -> str | None:
        """
        Run ``action`` and poll until the stack status is terminal.

        Events created after the call starts are passed to the event
        handler exactly once, oldest-first. There is no limit on how long
        this waits unless ``config.timeout`` is set.

        Args:
            action: Mutating call to make, or None to only observe

        Returns:
            The terminal status (None if the stack no longer exists)

        Raises:
            StackWaitTimeout: If ``config.timeout`` elapses first
        """
        watcher = EventWatcher(self._cfn, self.target)
        watcher.zero()
        if action is not None:
            action()
        deadline = None
        if self.config.timeout is not None:
            deadline = self._clock() + self.config.timeout
        while True:
            watcher.each_new_event(self.event_handler)
            status = self.status()
            logger.debug("stack_status=%s", status)
            if is_terminal(status):
                return status
            if deadline is not None and self._clock() >= deadline:
                raise StackWaitTimeout(self.stack_name, self.config.timeout, status)  # type: ignore[arg-type]
            self._sleep(self.config.poll_interval)
