"""
Stream CloudFormation stack events while a stack converges.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..config import POLL_INTERVAL
from ..progress import NullProgressLogger, ProgressLogger
from .stack_manager import StackManager, latest_timestamp
from .status import format_status

logger = logging.getLogger(__name__)


def short_reason(reason: str) -> str:
    """Drop the trailing ``(RequestToken: ..., HandlerErrorCode: ...)`` echo."""
    return reason.split(". (")[0]


class TailerState:
    """Watermark plus replay logic for one event stream."""

    def __init__(
        self,
        stack_name: str,
        progress: ProgressLogger,
        watermark: Optional[datetime] = None,
    ):
        self.stack_name = stack_name
        self.progress = progress
        self.watermark = watermark

    def replay(self, events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Emit events newer than the watermark, oldest first.

        ``events`` is in CloudFormation order (newest first). Returns the
        events that were emitted.
        """
        fresh = sorted(
            (
                event
                for event in events
                if self.watermark is None or event["Timestamp"] > self.watermark
            ),
            key=lambda event: event["Timestamp"],
        )

        for event in fresh:
            self.emit(event)

        newest = latest_timestamp(fresh)
        if newest is not None:
            self.watermark = newest
        return fresh

    def emit(self, event: Dict[str, Any]) -> None:
        status = format_status(event["ResourceStatus"])
        resource_id = event["LogicalResourceId"]

        if resource_id == event.get("StackName", self.stack_name):
            self.progress.info(f"{status}: Stack ({self.stack_name})")
            return

        self.progress.group(f"{status}: {resource_id} ({event['ResourceType']})")
        reason = event.get("ResourceStatusReason")
        if reason:
            self.progress.info(short_reason(reason))
        self.progress.group_end()


class EventTailerHandle:
    """Running tailer. ``stop`` is honoured at the top of the next tick."""

    def __init__(self, state: TailerState):
        self.state = state
        self.stopped = False
        self.task: Optional["asyncio.Task[None]"] = None

    def stop(self) -> None:
        self.stopped = True

    async def join(self) -> None:
        """Wait for the loop to notice ``stop`` (or for the stack to vanish)."""
        if self.task is not None:
            await self.task


class EventTailer:
    """Poll stack events in the background and report new ones."""

    def __init__(
        self,
        manager: StackManager,
        stack_name: str,
        logger: Optional[ProgressLogger] = None,
        poll_interval: float = POLL_INTERVAL,
    ):
        self.manager = manager
        self.stack_name = stack_name
        self.logger = logger or NullProgressLogger()
        self.poll_interval = poll_interval

    async def start(self, stack: Dict[str, Any]) -> EventTailerHandle:
        """Capture the watermark for ``stack`` and start tailing."""
        watermark = await self.manager.get_last_event_time(stack)
        handle = EventTailerHandle(TailerState(self.stack_name, self.logger, watermark))
        handle.task = asyncio.create_task(self._run(handle))
        return handle

    async def _run(self, handle: EventTailerHandle) -> None:
        while not handle.stopped:
            stack = await self.manager.get_active_stack(self.stack_name)
            if not stack:
                logger.debug(f"Stack {self.stack_name} is gone, stop tailing events")
                break
            events = await self.manager.get_stack_events(stack)
            handle.state.replay(events)
            await asyncio.sleep(self.poll_interval)
