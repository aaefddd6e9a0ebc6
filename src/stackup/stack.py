"""A CloudFormation stack, addressed by name."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from .config import StackupConfig, create_client
from .differ import DiffStyle, DiffView
from .differ import diff as render_diff
from .documents import parse_template_body
from .error_mapping import ErrorMappingProxy
from .exceptions import NoSuchStack
from .models import ChangeRequest, StackEvent, StackResult
from .naming import validate_stack_name
from .orchestrator import EventHandler, LifecycleOrchestrator
from .parameters import from_remote_form, tags_from_remote_form
from .watcher import EventWatcher

logger = logging.getLogger(__name__)


class Stack:
    """
    Lifecycle operations and read accessors for one CloudFormation stack.

    Example:
        stack = Stack("my-stack", config=StackupConfig(region="us-east-1"))
        result = stack.create_or_update(ChangeRequest(template=template))
        print(result, stack.outputs())

    Attributes:
        name: Stack name
        config: Options the stack was created with
    """

    def __init__(
        self,
        name: str,
        client: Any = None,
        config: StackupConfig | None = None,
        event_handler: EventHandler | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        """
        Initialize a stack handle. No remote call is made.

        Args:
            name: CloudFormation stack name (or stack ARN)
            client: boto3 CloudFormation client (default: built from ``config``)
            config: Region, endpoint, poll interval and timeout
            event_handler: Called once per new stack event during operations
            sleep: Sleep function between polls (default: ``time.sleep``)
        """
        validate_stack_name(name)
        self.name = name
        self.config = config or StackupConfig()
        if client is None:
            client = create_client(self.config)
        self._cfn = ErrorMappingProxy(client, name)
        kwargs: dict[str, Any] = {}
        if sleep is not None:
            kwargs["sleep"] = sleep
        self._orchestrator = LifecycleOrchestrator(
            name, self._cfn, self.config, event_handler, **kwargs
        )

    def on_event(self, handler: EventHandler) -> None:
        """Register the handler that receives stack events during operations."""
        self._orchestrator.event_handler = handler

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------

    def status(self) -> str | None:
        """Current stack status, or None if the stack does not exist."""
        return self._orchestrator.status()

    def exists(self) -> bool:
        return self.status() is not None

    def stack_id(self) -> str:
        """
        Provider-assigned stack id.

        Raises:
            NoSuchStack: If the stack does not exist
        """
        return str(self._orchestrator.describe()["StackId"])

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------

    def create_or_update(self, request: ChangeRequest) -> StackResult:
        """Create the stack, or update it if it exists. See LifecycleOrchestrator."""
        return self._orchestrator.create_or_update(request)

    up = create_or_update

    def delete(self) -> StackResult:
        """Delete the stack; deleting a missing stack is a no-op."""
        return self._orchestrator.delete()

    down = delete

    def cancel_update(self) -> StackResult:
        """Cancel an in-progress update; a no-op if nothing is updating."""
        return self._orchestrator.cancel_update()

    def wait(self) -> str | None:
        """Wait for any in-progress operation to finish, relaying events."""
        return self._orchestrator.wait()

    # -------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------

    def _describe(self) -> dict[str, Any]:
        return self._orchestrator.describe()

    def template(self) -> Any:
        """The deployed template, as a structured document."""
        response = self._cfn.get_template(StackName=self.name, TemplateStage="Original")
        return parse_template_body(response.get("TemplateBody"))

    def parameters(self) -> dict[str, Any]:
        """Deployed parameter values by key."""
        return from_remote_form(self._describe().get("Parameters", []))

    def tags(self) -> dict[str, Any]:
        """Stack tags by key."""
        return tags_from_remote_form(self._describe().get("Tags", []))

    def outputs(self) -> dict[str, str]:
        """Stack outputs, output key to value."""
        return {
            output["OutputKey"]: output["OutputValue"]
            for output in self._describe().get("Outputs", [])
        }

    def resources(self) -> dict[str, str | None]:
        """Map of logical resource id to physical resource id."""
        result: dict[str, str | None] = {}
        kwargs: dict[str, Any] = {"StackName": self.name}
        while True:
            response = self._cfn.list_stack_resources(**kwargs)
            for summary in response.get("StackResourceSummaries", []):
                result[summary["LogicalResourceId"]] = summary.get("PhysicalResourceId")
            next_token = response.get("NextToken")
            if not next_token:
                return result
            kwargs["NextToken"] = next_token

    def events(self) -> list[StackEvent]:
        """
        The full event log, oldest-first.

        Raises:
            NoSuchStack: If the stack does not exist
        """
        self._describe()
        return EventWatcher(self._cfn, self.name).new_events()

    @contextmanager
    def watch(self, zero: bool = True) -> Iterator[EventWatcher]:
        """
        Yield an event watcher for this stack.

        Args:
            zero: Skip events that already exist (report only new ones)
        """
        watcher = EventWatcher(self._cfn, self.name)
        if zero:
            watcher.zero()
        yield watcher

    def inspect(self) -> dict[str, Any]:
        """Status, parameters, tags, resources and outputs in one document."""
        stack = self._describe()
        return {
            "Status": stack.get("StackStatus"),
            "Parameters": from_remote_form(stack.get("Parameters", [])),
            "Tags": tags_from_remote_form(stack.get("Tags", [])),
            "Resources": self.resources(),
            "Outputs": {o["OutputKey"]: o["OutputValue"] for o in stack.get("Outputs", [])},
        }

    # -------------------------------------------------------------------
    # Diff
    # -------------------------------------------------------------------

    def current_view(self, planned: DiffView) -> DiffView:
        """Live state for the sections present in ``planned``."""
        try:
            stack = self._describe()
        except NoSuchStack:
            logger.debug("Stack %s does not exist; diffing against nothing", self.name)
            return DiffView()
        view = DiffView()
        if planned.template is not None:
            view.template = self.template()
        if planned.parameters is not None:
            view.parameters = from_remote_form(stack.get("Parameters", []))
        if planned.tags is not None:
            view.tags = tags_from_remote_form(stack.get("Tags", []))
        return view

    def diff(
        self,
        planned: DiffView,
        style: DiffStyle | str = DiffStyle.TEXT,
        fmt: str = "yaml",
    ) -> str:
        """
        Diff ``planned`` against the live stack. Nothing is modified.

        Raises:
            UsageError: If ``planned`` is empty
        """
        if planned.is_empty():
            # Fail before any remote call.
            return render_diff(DiffView(), planned, style, fmt)
        return render_diff(self.current_view(planned), planned, style, fmt)
