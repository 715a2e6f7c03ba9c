"""
Poll a stack until it reaches a terminal status.
"""

import asyncio
from typing import Any, Dict, Optional

from ..config import POLL_INTERVAL
from ..progress import NullProgressLogger, ProgressLogger
from .stack_manager import StackManager
from .status import StatusReporter, is_terminal


class StackWaiter:
    """Block until a stack status ends in ``_COMPLETE``.

    Rollback completions are terminal too; callers that care must inspect
    the returned status themselves.
    """

    def __init__(
        self,
        manager: StackManager,
        logger: Optional[ProgressLogger] = None,
        poll_interval: float = POLL_INTERVAL,
    ):
        self.manager = manager
        self.logger = logger or NullProgressLogger()
        self.poll_interval = poll_interval

    async def wait_until_terminal(self, stack: Dict[str, Any]) -> str:
        """Poll ``stack`` and return its terminal status."""
        reporter = StatusReporter(self.logger)
        while True:
            status = await self.manager.get_stack_status(stack)
            reporter.report(status)
            if is_terminal(status):
                return status
            await asyncio.sleep(self.poll_interval)
