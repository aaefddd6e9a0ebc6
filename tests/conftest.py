"""Pytest fixtures for stackup tests."""

import pytest
from moto import mock_aws


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mock AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    # Unset AWS_ENDPOINT_URL to ensure moto intercepts requests
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)
    monkeypatch.delenv("STACKUP_POLL_INTERVAL", raising=False)
    monkeypatch.delenv("STACKUP_TIMEOUT", raising=False)


@pytest.fixture
def mock_cloudformation(aws_credentials):
    """Mock CloudFormation for tests."""
    with mock_aws():
        yield
