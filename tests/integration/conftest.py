"""Integration test fixtures: moto, and LocalStack when available."""

import json
import os
import time
import uuid

import boto3
import pytest

TOPIC_TEMPLATE = {
    "AWSTemplateFormatVersion": "2010-09-09",
    "Parameters": {"Env": {"Type": "String", "Default": "dev"}},
    "Resources": {"Topic": {"Type": "AWS::SNS::Topic"}},
    "Outputs": {"TopicArn": {"Value": {"Ref": "Topic"}}},
}


@pytest.fixture
def topic_template():
    """A minimal one-resource template."""
    return json.loads(json.dumps(TOPIC_TEMPLATE))


@pytest.fixture
def cfn_client(mock_cloudformation):
    """boto3 CloudFormation client backed by moto."""
    return boto3.client("cloudformation", region_name="us-east-1")


@pytest.fixture(scope="session")
def localstack_endpoint():
    """LocalStack endpoint URL from environment."""
    endpoint = os.getenv("AWS_ENDPOINT_URL")
    if not endpoint:
        pytest.skip("AWS_ENDPOINT_URL not set - LocalStack not available")
    return endpoint


@pytest.fixture
def unique_name():
    """Generate unique stack name for test isolation.

    Uses hyphens instead of underscores because stack names
    must match pattern [a-zA-Z][-a-zA-Z0-9]*.
    """
    timestamp = int(time.time())
    unique_id = uuid.uuid4().hex[:8]
    return f"integration-test-{timestamp}-{unique_id}"
