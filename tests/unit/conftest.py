"""Unit test fixtures: a scripted in-memory CloudFormation client."""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from botocore.exceptions import ClientError

from stackup import Stack, StackupConfig


def client_error(message: str, code: str = "ValidationError", operation: str = "Op") -> ClientError:
    """Build a botocore ClientError the way CloudFormation reports it."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeCloudFormation:
    """
    In-memory stand-in for a boto3 CloudFormation client.

    Mutating calls start a script of ``(status, events)`` steps. The first
    step applies immediately; each ``tick`` (used as the orchestrator's sleep
    function) applies the next one. Events are kept newest-first, the way
    ``describe_stack_events`` returns them.
    """

    BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __init__(self, name: str = "test-stack") -> None:
        self.name = name
        self.stack_id: str | None = None
        self.status: str | None = None
        self.events: list[dict[str, Any]] = []
        self.parameters: list[dict[str, Any]] = []
        self.tags: list[dict[str, str]] = []
        self.outputs: list[dict[str, str]] = []
        self.resources: dict[str, str] = {}
        self.template_body: Any = None
        self.page_size = 100
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.errors: dict[str, Exception] = {}
        self.sleeps: list[float] = []
        self.event_calls = 0
        self._event_counter = 0
        self._steps: list[tuple[str | None, list[tuple]]] = []
        self.scripts: dict[str, list[tuple[str | None, list[tuple]]]] = {
            "create_stack": [
                ("CREATE_IN_PROGRESS", [(name, "CREATE_IN_PROGRESS", "User Initiated")]),
                (
                    "CREATE_IN_PROGRESS",
                    [("Bucket", "CREATE_IN_PROGRESS"), ("Bucket", "CREATE_COMPLETE")],
                ),
                ("CREATE_COMPLETE", [(name, "CREATE_COMPLETE")]),
            ],
            "update_stack": [
                ("UPDATE_IN_PROGRESS", [(name, "UPDATE_IN_PROGRESS", "User Initiated")]),
                ("UPDATE_COMPLETE", [("Bucket", "UPDATE_COMPLETE"), (name, "UPDATE_COMPLETE")]),
            ],
            "delete_stack": [
                ("DELETE_IN_PROGRESS", [(name, "DELETE_IN_PROGRESS", "User Initiated")]),
                ("DELETE_COMPLETE", [("Bucket", "DELETE_COMPLETE"), (name, "DELETE_COMPLETE")]),
            ],
            "cancel_update_stack": [
                ("UPDATE_ROLLBACK_IN_PROGRESS", [(name, "UPDATE_ROLLBACK_IN_PROGRESS")]),
                ("UPDATE_ROLLBACK_COMPLETE", [(name, "UPDATE_ROLLBACK_COMPLETE")]),
            ],
        }

    # -- test helpers -------------------------------------------------------

    def existing(self, status: str = "CREATE_COMPLETE", history: int = 2) -> "FakeCloudFormation":
        """Put the fake into a state where the stack exists with some history."""
        self.stack_id = f"arn:aws:cloudformation:us-east-1:123456789012:stack/{self.name}/1"
        self.status = status
        for _ in range(history):
            self.add_event(self.name, "CREATE_COMPLETE")
        return self

    def add_event(self, logical_id: str, status: str, reason: str | None = None) -> dict:
        self._event_counter += 1
        event = {
            "EventId": f"evt-{self._event_counter}",
            "StackName": self.name,
            "LogicalResourceId": logical_id,
            "PhysicalResourceId": f"phys-{logical_id}",
            "ResourceType": "AWS::CloudFormation::Stack"
            if logical_id == self.name
            else "AWS::S3::Bucket",
            "Timestamp": self.BASE_TIME + timedelta(seconds=self._event_counter),
            "ResourceStatus": status,
        }
        if reason:
            event["ResourceStatusReason"] = reason
        self.events.insert(0, event)
        return event

    def mutating_calls(self) -> list[str]:
        return [name for name, _ in self.calls if not name.startswith(("describe", "get", "list"))]

    def schedule(self, steps: list[tuple[str | None, list[tuple]]]) -> None:
        """Queue steps to apply on subsequent ticks (an operation already running)."""
        self._steps = list(steps)

    def tick(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if self._steps:
            self._apply(self._steps.pop(0))

    def _apply(self, step: tuple[str | None, list[tuple]]) -> None:
        status, events = step
        self.status = status
        for event in events:
            self.add_event(*event)

    def _start(self, method: str) -> None:
        steps = list(self.scripts[method])
        self._apply(steps.pop(0))
        self._steps = steps

    def _record(self, method: str, kwargs: dict[str, Any]) -> None:
        self.calls.append((method, kwargs))
        if method in self.errors:
            raise self.errors[method]

    def _visible(self, stack_name: str) -> bool:
        if self.status is None:
            return False
        if self.status == "DELETE_COMPLETE":
            return stack_name == self.stack_id
        return stack_name in (self.name, self.stack_id)

    def _not_found(self, stack_name: str) -> ClientError:
        return client_error(f"Stack with id {stack_name} does not exist")

    # -- boto3 client surface ------------------------------------------------

    def describe_stacks(self, StackName: str) -> dict[str, Any]:  # noqa: N803
        self._record("describe_stacks", {"StackName": StackName})
        if not self._visible(StackName):
            raise self._not_found(StackName)
        return {
            "Stacks": [
                {
                    "StackName": self.name,
                    "StackId": self.stack_id,
                    "StackStatus": self.status,
                    "Parameters": self.parameters,
                    "Tags": self.tags,
                    "Outputs": self.outputs,
                }
            ]
        }

    def describe_stack_events(self, StackName: str, NextToken: str | None = None) -> dict:  # noqa: N803
        self.event_calls += 1
        self._record("describe_stack_events", {"StackName": StackName, "NextToken": NextToken})
        if not self._visible(StackName) and not self.events:
            raise client_error(f"Stack [{StackName}] does not exist")
        start = int(NextToken or 0)
        end = start + self.page_size
        response: dict[str, Any] = {"StackEvents": self.events[start:end]}
        if end < len(self.events):
            response["NextToken"] = str(end)
        return response

    def create_stack(self, **kwargs: Any) -> dict[str, Any]:
        self._record("create_stack", kwargs)
        if self._visible(kwargs["StackName"]):
            raise client_error(f"Stack [{kwargs['StackName']}] already exists", "AlreadyExistsException")
        self.events = []
        self.stack_id = f"arn:aws:cloudformation:us-east-1:123456789012:stack/{self.name}/2"
        self.parameters = kwargs.get("Parameters", [])
        self.tags = kwargs.get("Tags", [])
        self._start("create_stack")
        return {"StackId": self.stack_id}

    def update_stack(self, **kwargs: Any) -> dict[str, Any]:
        self._record("update_stack", kwargs)
        if not self._visible(kwargs["StackName"]):
            raise self._not_found(kwargs["StackName"])
        self._start("update_stack")
        return {"StackId": self.stack_id}

    def delete_stack(self, StackName: str) -> dict:  # noqa: N803
        self._record("delete_stack", {"StackName": StackName})
        self._start("delete_stack")
        return {}

    def cancel_update_stack(self, StackName: str) -> dict:  # noqa: N803
        self._record("cancel_update_stack", {"StackName": StackName})
        if self.status != "UPDATE_IN_PROGRESS":
            raise client_error(
                "CancelUpdateStack cannot be called from current stack status"
            )
        self._start("cancel_update_stack")
        return {}

    def get_template(self, StackName: str, TemplateStage: str = "Original") -> dict:  # noqa: N803
        self._record("get_template", {"StackName": StackName})
        if not self._visible(StackName):
            raise self._not_found(StackName)
        return {"TemplateBody": self.template_body}

    def list_stack_resources(self, StackName: str, NextToken: str | None = None) -> dict:  # noqa: N803
        self._record("list_stack_resources", {"StackName": StackName, "NextToken": NextToken})
        if not self._visible(StackName):
            raise self._not_found(StackName)
        items = list(self.resources.items())
        start = int(NextToken or 0)
        end = start + self.page_size
        response: dict[str, Any] = {
            "StackResourceSummaries": [
                {"LogicalResourceId": logical, "PhysicalResourceId": physical}
                for logical, physical in items[start:end]
            ]
        }
        if end < len(items):
            response["NextToken"] = str(end)
        return response


@pytest.fixture
def fake_cfn():
    """A FakeCloudFormation with no stack."""
    return FakeCloudFormation()


@pytest.fixture
def make_error():
    """Factory for CloudFormation ClientErrors."""
    return client_error


@pytest.fixture
def received():
    """List collecting events passed to an event handler."""
    return []


@pytest.fixture
def stack(fake_cfn, received):
    """A Stack wired to the fake client, recording events into ``received``."""
    return Stack(
        "test-stack",
        client=fake_cfn,
        config=StackupConfig(poll_interval=5.0),
        event_handler=received.append,
        sleep=fake_cfn.tick,
    )
