"""
Tests for StackWaiter polling.
"""

from unittest.mock import AsyncMock, Mock

import pytest
from botocore.exceptions import ClientError

from aws_install.cloudformation.stack_manager import StackManager
from aws_install.cloudformation.waiter import StackWaiter

from conftest import STACK_ID, make_stack


class TestStackWaiter:
    """Test waiting for terminal stack statuses."""

    @pytest.mark.asyncio
    async def test_waits_until_complete(self, async_manager, progress) -> None:
        """Test polling stops at the first *_COMPLETE status."""
        async_manager.get_stack_status.side_effect = [
            "UPDATE_IN_PROGRESS",
            "UPDATE_IN_PROGRESS",
            "UPDATE_COMPLETE_CLEANUP_IN_PROGRESS",
            "UPDATE_COMPLETE",
        ]
        waiter = StackWaiter(async_manager, progress, poll_interval=0)

        status = await waiter.wait_until_terminal(make_stack())

        assert status == "UPDATE_COMPLETE"
        assert async_manager.get_stack_status.await_count == 4
        assert progress.lines == [
            "Update in progress",
            "Update complete cleanup in progress",
            "Update complete",
        ]

    @pytest.mark.asyncio
    async def test_rollback_complete_is_terminal(self, async_manager, progress) -> None:
        """Test rollback completions end the wait like any completion."""
        async_manager.get_stack_status.side_effect = [
            "UPDATE_ROLLBACK_IN_PROGRESS",
            "UPDATE_ROLLBACK_COMPLETE",
        ]
        waiter = StackWaiter(async_manager, progress, poll_interval=0)

        assert await waiter.wait_until_terminal(make_stack()) == "UPDATE_ROLLBACK_COMPLETE"
        assert progress.lines == ["Update rollback in progress", "Update rollback complete"]

    @pytest.mark.asyncio
    async def test_status_errors_propagate(self, async_manager, progress) -> None:
        """Test a failing status query is fatal and not retried."""
        async_manager.get_stack_status.side_effect = ClientError(
            {"Error": {"Code": "ExpiredToken", "Message": "expired"}}, "DescribeStacks"
        )
        waiter = StackWaiter(async_manager, progress, poll_interval=0)

        with pytest.raises(ClientError):
            await waiter.wait_until_terminal(make_stack())
        assert async_manager.get_stack_status.await_count == 1

    @pytest.mark.asyncio
    async def test_polls_by_stack_id(self, progress) -> None:
        """Test the waiter re-describes the stack by id on every poll."""
        cloudformation = Mock()
        cloudformation.describe_stacks.side_effect = [
            {"Stacks": [make_stack("DELETE_IN_PROGRESS")]},
            {"Stacks": [make_stack("DELETE_COMPLETE")]},
        ]
        manager = StackManager(cloudformation=cloudformation, s3=Mock())
        waiter = StackWaiter(manager, progress, poll_interval=0)

        assert await waiter.wait_until_terminal(make_stack()) == "DELETE_COMPLETE"
        for call in cloudformation.describe_stacks.call_args_list:
            assert call.kwargs == {"StackName": STACK_ID}

    @pytest.mark.asyncio
    async def test_silent_by_default(self, async_manager) -> None:
        """Test the waiter works without a progress logger."""
        async_manager.get_stack_status = AsyncMock(return_value="CREATE_COMPLETE")

        assert await StackWaiter(async_manager).wait_until_terminal(make_stack()) == (
            "CREATE_COMPLETE"
        )
