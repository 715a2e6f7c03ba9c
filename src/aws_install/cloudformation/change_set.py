"""
Create, classify and execute CloudFormation change sets.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from ..aws import call
from ..config import POLL_INTERVAL
from ..errors import ChangeSetFailedError
from ..progress import NullProgressLogger, ProgressLogger
from .stack_manager import BUCKET_NAME_TAG
from .status import StatusReporter, is_terminal

logger = logging.getLogger(__name__)

FAILED_STATUS = "FAILED"
CHANGE_ACTIONS = ["Add", "Modify", "Remove"]


class ChangeSetOrchestrator:
    """Drive one change set from creation to execution."""

    def __init__(
        self,
        cloudformation: Any,
        logger: Optional[ProgressLogger] = None,
        poll_interval: float = POLL_INTERVAL,
        capabilities: Optional[List[str]] = None,
    ):
        self.cloudformation = cloudformation
        self.logger = logger or NullProgressLogger()
        self.poll_interval = poll_interval
        self.capabilities = capabilities or ["CAPABILITY_NAMED_IAM"]

    @staticmethod
    def change_set_name(stack_name: str) -> str:
        """Unique per attempt: stack name plus epoch milliseconds."""
        return f"{stack_name}{int(time.time() * 1000)}"

    async def create_and_wait(
        self,
        stack: Optional[Dict[str, Any]],
        stack_name: str,
        template_body: str,
        bucket_name: str,
        parameters: Optional[List[Dict[str, str]]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Create a change set and wait until it can be executed.

        Args:
            stack: The existing stack, or None to create a new one
            stack_name: Name of the stack
            template_body: Packaged template
            bucket_name: Asset bucket, recorded as a stack tag
            parameters: CloudFormation ``Parameters`` entries

        Returns:
            The described change set, or None when there is nothing to change

        Raises:
            ChangeSetFailedError: the change set failed despite having changes
        """
        change_set_type = "UPDATE" if stack else "CREATE"
        created = await call(
            self.cloudformation.create_change_set,
            StackName=stack_name,
            ChangeSetName=self.change_set_name(stack_name),
            Capabilities=self.capabilities,
            TemplateBody=template_body,
            ChangeSetType=change_set_type,
            Parameters=parameters or [],
            Tags=[{"Key": BUCKET_NAME_TAG, "Value": bucket_name}],
        )
        change_set_id = created["Id"]
        logger.debug(f"Created {change_set_type} change set {change_set_id}")

        reporter = StatusReporter(self.logger)
        while True:
            change_set = await self.describe(change_set_id)
            status = change_set["Status"]

            if status == FAILED_STATUS:
                return await self._resolve_failed(change_set)

            reporter.report(status)
            if is_terminal(status):
                return change_set
            await asyncio.sleep(self.poll_interval)

    async def _resolve_failed(self, change_set: Dict[str, Any]) -> None:
        change_set_id = change_set["ChangeSetId"]
        if change_set.get("Changes"):
            raise ChangeSetFailedError(
                change_set.get("StatusReason", "Change set failed"), change_set_id
            )

        # No drift: CloudFormation refuses empty change sets with FAILED
        logger.debug(f"Empty change set: {change_set.get('StatusReason', '')}")
        await call(self.cloudformation.delete_change_set, ChangeSetName=change_set_id)
        return None

    def _describe_all_pages(self, change_set_id: str) -> Dict[str, Any]:
        response = self.cloudformation.describe_change_set(ChangeSetName=change_set_id)
        changes = list(response.get("Changes", []))
        while response.get("NextToken"):
            response = self.cloudformation.describe_change_set(
                ChangeSetName=change_set_id, NextToken=response["NextToken"]
            )
            changes.extend(response.get("Changes", []))

        description = dict(response)
        description.pop("NextToken", None)
        description["Changes"] = changes
        return description

    async def describe(self, change_set_id: str) -> Dict[str, Any]:
        """Describe a change set including every page of changes."""
        return await call(self._describe_all_pages, change_set_id)

    async def execute(self, change_set: Dict[str, Any]) -> None:
        await call(
            self.cloudformation.execute_change_set,
            ChangeSetName=change_set["ChangeSetId"],
        )

    def show_changes(self, change_set: Dict[str, Any]) -> None:
        """Print proposed resource changes grouped by action."""
        by_action = group_changes(change_set)
        for action in CHANGE_ACTIONS:
            resources = by_action.get(action)
            if not resources:
                continue
            self.logger.group(f"{action} resources")
            for resource in resources:
                self.logger.info(
                    f"{resource['LogicalResourceId']} ({resource['ResourceType']})"
                )
            self.logger.group_end()


def group_changes(change_set: Dict[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """Map action -> resource changes, preserving change set order."""
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for change in change_set.get("Changes", []):
        resource = change.get("ResourceChange", {})
        grouped.setdefault(resource.get("Action", ""), []).append(resource)
    return grouped
