"""Core models for stackup."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from .exceptions import UsageError
from .parameters import is_use_previous_value, tags_to_remote_form, to_remote_form

TERMINAL_SUFFIXES = ("_COMPLETE", "_FAILED")

# Statuses from which the only valid next step is delete.
ALMOST_DEAD_STATUSES = ("CREATE_FAILED", "ROLLBACK_COMPLETE")

DEFAULT_CAPABILITIES = ("CAPABILITY_IAM",)


def is_terminal(status: str | None) -> bool:
    """
    Check whether a stack status means no operation is in progress.

    A missing status (stack does not exist) is terminal, as is any status
    ending in ``_COMPLETE`` or ``_FAILED``.
    """
    return status is None or status.endswith(TERMINAL_SUFFIXES)


class StackResult(str, Enum):
    """Outcome of a lifecycle operation."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    CANCELLED = "cancelled"
    NOOP = "noop"

    def __str__(self) -> str:
        return self.value


class OnFailure(str, Enum):
    """What CloudFormation does when stack creation fails."""

    DO_NOTHING = "DO_NOTHING"
    ROLLBACK = "ROLLBACK"
    DELETE = "DELETE"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class StackEvent:
    """
    One entry from a stack's event log.

    Attributes:
        event_id: Provider-assigned unique id
        timestamp: When the event was recorded
        logical_resource_id: Template name of the resource (or the stack)
        physical_resource_id: Provider name/ARN of the resource
        resource_type: e.g. ``AWS::S3::Bucket``
        status: Resource status (e.g. ``CREATE_IN_PROGRESS``)
        reason: Optional status reason
    """

    event_id: str | None
    timestamp: datetime | None
    logical_resource_id: str
    physical_resource_id: str | None
    resource_type: str | None
    status: str
    reason: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> StackEvent:
        """Build from a ``describe_stack_events`` entry."""
        return cls(
            event_id=data.get("EventId"),
            timestamp=data.get("Timestamp"),
            logical_resource_id=data.get("LogicalResourceId", ""),
            physical_resource_id=data.get("PhysicalResourceId"),
            resource_type=data.get("ResourceType"),
            status=data.get("ResourceStatus", ""),
            reason=data.get("ResourceStatusReason"),
        )

    @property
    def identity(self) -> tuple[Any, ...]:
        """Key used to recognize an event already seen."""
        if self.event_id:
            return (self.event_id,)
        return (self.timestamp, self.logical_resource_id, self.status)

    def summary(self) -> str:
        """``logical_id - status - reason`` (reason omitted if absent)."""
        fields = [self.logical_resource_id, self.status, self.reason]
        return " - ".join(f for f in fields if f)


def _template_body(template: Any) -> str:
    if isinstance(template, str):
        return template
    return json.dumps(template, indent=2, default=str)


@dataclass
class ChangeRequest:
    """
    A create/update intent for one stack.

    Attributes:
        template: Template document (mapping) or raw body string
        template_url: S3 URL of the template, instead of ``template``
        use_previous_template: Reuse the deployed template on update
        parameters: Parameter mapping (or remote list form); values may be
            ``USE_PREVIOUS_VALUE``
        tags: Tag mapping (or remote list form)
        stack_policy: Stack policy document (mapping) or body string
        capabilities: Acknowledged capabilities (empty: the stack config default)
        on_failure: Action when creation fails (create only)
        timeout_in_minutes: Creation timeout (create only)
    """

    template: Any = None
    template_url: str | None = None
    use_previous_template: bool = False
    parameters: Any = None
    tags: Any = None
    stack_policy: Any = None
    capabilities: tuple[str, ...] = ()
    on_failure: OnFailure = OnFailure.ROLLBACK
    timeout_in_minutes: int | None = None

    def __post_init__(self) -> None:
        self.capabilities = tuple(self.capabilities or ())
        self.on_failure = OnFailure(self.on_failure)
        if self.template is not None and self.template_url:
            raise UsageError("Specify either a template or a template URL, not both")

    def _common_arguments(self, stack_name: str) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"StackName": stack_name}
        if self.capabilities:
            kwargs["Capabilities"] = list(self.capabilities)
        if self.tags is not None:
            kwargs["Tags"] = tags_to_remote_form(self.tags)
        if self.stack_policy is not None:
            kwargs["StackPolicyBody"] = _template_body(self.stack_policy)
        return kwargs

    def create_arguments(self, stack_name: str) -> dict[str, Any]:
        """
        Keyword arguments for ``create_stack``.

        Raises:
            UsageError: If neither a template nor a template URL was given
        """
        kwargs = self._common_arguments(stack_name)
        if self.template is not None:
            kwargs["TemplateBody"] = _template_body(self.template)
        elif self.template_url:
            kwargs["TemplateURL"] = self.template_url
        else:
            raise UsageError(f"Cannot create stack {stack_name} without a template")

        # A new stack has no previous values to keep; template defaults apply.
        kwargs["Parameters"] = [
            p for p in to_remote_form(self.parameters) if not is_use_previous_value(p)
        ]
        kwargs["OnFailure"] = self.on_failure.value
        if self.timeout_in_minutes is not None:
            kwargs["TimeoutInMinutes"] = self.timeout_in_minutes
        return kwargs

    def update_arguments(self, stack_name: str) -> dict[str, Any]:
        """Keyword arguments for ``update_stack``."""
        kwargs = self._common_arguments(stack_name)
        if self.template is not None and not self.use_previous_template:
            kwargs["TemplateBody"] = _template_body(self.template)
        elif self.template_url and not self.use_previous_template:
            kwargs["TemplateURL"] = self.template_url
        else:
            kwargs["UsePreviousTemplate"] = True
        kwargs["Parameters"] = to_remote_form(self.parameters)
        return kwargs
