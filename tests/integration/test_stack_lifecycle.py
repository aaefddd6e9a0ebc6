"""End-to-end stack lifecycle against moto, and LocalStack when configured.

Moto applies changes synchronously, so every operation is terminal by the
first poll. These tests exercise the real boto3 request/response shapes and
error messages rather than polling behavior.
"""

import pytest

from stackup import ChangeRequest, DiffView, Stack, StackResult, StackupConfig


def _no_sleep(seconds: float) -> None:
    pass


@pytest.mark.moto
class TestStackLifecycleMoto:
    """Create, inspect, update and delete one stack."""

    def test_full_lifecycle(self, cfn_client, topic_template) -> None:
        received = []
        stack = Stack(
            "lifecycle-test",
            client=cfn_client,
            config=StackupConfig(poll_interval=0.1),
            event_handler=received.append,
            sleep=_no_sleep,
        )
        assert stack.status() is None

        result = stack.create_or_update(
            ChangeRequest(template=topic_template, parameters={"Env": "prod"})
        )

        assert result is StackResult.CREATED
        assert stack.status() == "CREATE_COMPLETE"
        assert received
        assert len({event.identity for event in received}) == len(received)
        assert stack.parameters() == {"Env": "prod"}
        assert stack.outputs()["TopicArn"].startswith("arn:aws:sns:")
        assert set(stack.resources()) == {"Topic"}
        assert stack.template() == topic_template

        result = stack.create_or_update(
            ChangeRequest(template=topic_template, parameters={"Env": "staging"})
        )

        assert result is StackResult.UPDATED
        assert stack.parameters() == {"Env": "staging"}

        result = stack.delete()

        assert result is StackResult.DELETED
        # moto versions differ on describing deleted stacks by name
        assert stack.status() in (None, "DELETE_COMPLETE")

    def test_delete_missing_stack_is_noop(self, cfn_client) -> None:
        stack = Stack("never-created", client=cfn_client, sleep=_no_sleep)

        assert stack.delete() is StackResult.NOOP

    def test_diff_against_live_stack(self, cfn_client, topic_template) -> None:
        stack = Stack("diff-test", client=cfn_client, sleep=_no_sleep)
        stack.create_or_update(
            ChangeRequest(template=topic_template, parameters={"Env": "prod"})
        )

        output = stack.diff(DiffView(parameters={"Env": "staging"}))

        assert "-Env: prod" in output
        assert "+Env: staging" in output

    def test_events_include_stack_completion(self, cfn_client, topic_template) -> None:
        stack = Stack("events-test", client=cfn_client, sleep=_no_sleep)
        stack.create_or_update(ChangeRequest(template=topic_template))

        events = stack.events()

        assert any(
            event.logical_resource_id == "events-test"
            and event.status == "CREATE_COMPLETE"
            for event in events
        )


class TestStackLifecycleLocalStack:
    """Round trip against LocalStack; skipped unless AWS_ENDPOINT_URL is set."""

    def test_create_and_delete(self, localstack_endpoint, unique_name, topic_template) -> None:
        stack = Stack(
            unique_name,
            config=StackupConfig(
                region="us-east-1",
                endpoint_url=localstack_endpoint,
                poll_interval=1.0,
                timeout=300,
            ),
        )
        try:
            assert stack.create_or_update(ChangeRequest(template=topic_template)) is (
                StackResult.CREATED
            )
            assert "TopicArn" in stack.outputs()
        finally:
            assert stack.delete() in (StackResult.DELETED, StackResult.NOOP)
