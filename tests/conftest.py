"""
Shared fixtures for stack lifecycle tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest

from aws_install.cloudformation.stack_manager import StackManager
from aws_install.progress import ProgressLogger

STACK_NAME = "test-stack"
STACK_ID = "arn:aws:cloudformation:us-east-1:123456789012:stack/test-stack/abc"
T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class RecordingProgressLogger(ProgressLogger):
    """Collect progress output as indented lines."""

    def __init__(self) -> None:
        self.lines: List[str] = []
        self.depth = 0

    def info(self, message: str) -> None:
        self.lines.append("  " * self.depth + message)

    def group(self, message: str) -> None:
        self.info(message)
        self.depth += 1

    def group_end(self) -> None:
        self.depth -= 1

    @property
    def messages(self) -> List[str]:
        return [line.strip() for line in self.lines]


def make_stack(
    status: str = "CREATE_COMPLETE",
    tags: Optional[List[Dict[str, str]]] = None,
    outputs: Optional[List[Dict[str, str]]] = None,
) -> Dict[str, Any]:
    return {
        "StackName": STACK_NAME,
        "StackId": STACK_ID,
        "StackStatus": status,
        "Tags": tags or [],
        "Outputs": outputs or [],
    }


def make_event(
    seconds: int,
    resource_id: str = "Function",
    status: str = "CREATE_IN_PROGRESS",
    resource_type: str = "AWS::Lambda::Function",
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    event = {
        "StackName": STACK_NAME,
        "StackId": STACK_ID,
        "Timestamp": T0 + timedelta(seconds=seconds),
        "LogicalResourceId": resource_id,
        "ResourceType": resource_type,
        "ResourceStatus": status,
    }
    if reason:
        event["ResourceStatusReason"] = reason
    return event


@pytest.fixture
def progress() -> RecordingProgressLogger:
    return RecordingProgressLogger()


@pytest.fixture
def manager() -> StackManager:
    """Stack manager with mocked AWS clients."""
    return StackManager(cloudformation=Mock(), s3=Mock())


@pytest.fixture
def async_manager() -> Mock:
    """Stand-in for StackManager with awaitable query methods."""
    fake = Mock(spec=StackManager)
    fake.region = "us-east-1"
    fake.cloudformation = Mock()
    fake.s3 = Mock()
    for name in (
        "get_active_stack",
        "describe_stack",
        "get_stack_status",
        "delete_stack",
        "validate_template",
        "get_stack_events",
        "get_last_event_time",
    ):
        setattr(fake, name, AsyncMock())
    return fake


@pytest.fixture
def aws_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Mocked AWS credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
