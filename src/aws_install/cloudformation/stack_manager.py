"""
CloudFormation stack queries used by install and uninstall.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from ..aws import call
from ..config import AwsSettings
from ..errors import ValidationError
from ..naming import new_bucket_name
from .status import ACTIVE_STATUSES

logger = logging.getLogger(__name__)

BUCKET_NAME_TAG = "bucketName"


class StackManager:
    """Manage CloudFormation stack operations."""

    def __init__(
        self,
        settings: Optional[AwsSettings] = None,
        cloudformation: Any = None,
        s3: Any = None,
    ):
        """
        Initialize stack manager.

        Args:
            settings: AWS region and credentials
            cloudformation: Pre-built CloudFormation client
            s3: Pre-built S3 client
        """
        self.settings = settings or AwsSettings.from_env()
        self.region = self.settings.region_name

        if cloudformation is None or s3 is None:
            session = self.settings.create_session()
            cloudformation = cloudformation or session.client("cloudformation")
            s3 = s3 or session.client("s3")

        self.cloudformation = cloudformation
        self.s3 = s3

    def _list_stack_summaries(self, stack_name: str) -> List[Dict[str, Any]]:
        paginator = self.cloudformation.get_paginator("list_stacks")
        summaries = []
        for page in paginator.paginate(StackStatusFilter=ACTIVE_STATUSES):
            for summary in page["StackSummaries"]:
                if summary["StackName"] == stack_name:
                    summaries.append(summary)
        return summaries

    async def get_active_stack(self, stack_name: str) -> Optional[Dict[str, Any]]:
        """Find the stack currently holding ``stack_name``, if any.

        Returns the full ``DescribeStacks`` entry so that tags and outputs
        are available.
        """
        summaries = await call(self._list_stack_summaries, stack_name)
        if not summaries:
            return None

        stack_id = summaries[-1]["StackId"]
        try:
            response = await call(self.cloudformation.describe_stacks, StackName=stack_id)
        except ClientError as e:
            logger.debug(f"Active stack {stack_name} vanished before describe: {e}")
            return None

        stacks = response.get("Stacks") or []
        return stacks[-1] if stacks else None

    async def describe_stack(self, stack: Dict[str, Any]) -> Dict[str, Any]:
        """Fetch a fresh description of ``stack`` by its id."""
        response = await call(
            self.cloudformation.describe_stacks, StackName=stack_ref(stack)
        )
        return response["Stacks"][0]

    async def get_stack_status(self, stack: Dict[str, Any]) -> str:
        """Get current stack status."""
        description = await self.describe_stack(stack)
        return str(description["StackStatus"])

    async def delete_stack(self, stack: Dict[str, Any]) -> None:
        """Request deletion; does not wait."""
        logger.debug(f"Deleting stack {stack_ref(stack)}")
        await call(self.cloudformation.delete_stack, StackName=stack_ref(stack))

    async def validate_template(self, template_body: str) -> Dict[str, Any]:
        """Validate a CloudFormation template.

        Raises:
            ValidationError: when CloudFormation rejects the template
        """
        try:
            response = await call(
                self.cloudformation.validate_template, TemplateBody=template_body
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ValidationError":
                raise ValidationError(e.response["Error"].get("Message", str(e))) from e
            raise

        return {
            "parameters": response.get("Parameters", []),
            "capabilities": response.get("Capabilities", []),
            "description": response.get("Description", ""),
        }

    def _list_stack_events(self, stack_id: str) -> List[Dict[str, Any]]:
        paginator = self.cloudformation.get_paginator("describe_stack_events")
        events: List[Dict[str, Any]] = []
        for page in paginator.paginate(StackName=stack_id):
            events.extend(page.get("StackEvents", []))
        return events

    async def get_stack_events(self, stack: Dict[str, Any]) -> List[Dict[str, Any]]:
        """All events of a stack, newest first (CloudFormation order)."""
        return await call(self._list_stack_events, stack_ref(stack))

    async def get_last_event_time(self, stack: Dict[str, Any]) -> Optional[datetime]:
        """Timestamp of the newest event of a stack."""
        events = await self.get_stack_events(stack)
        return latest_timestamp(events)


def stack_ref(stack: Dict[str, Any]) -> str:
    """Prefer the immutable stack id; fall back to the name."""
    return str(stack.get("StackId") or stack["StackName"])


def latest_timestamp(events: List[Dict[str, Any]]) -> Optional[datetime]:
    if not events:
        return None
    return max(event["Timestamp"] for event in events)


def get_stack_outputs(stack: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Get outputs from a described stack as a plain mapping."""
    if not stack:
        return {}
    return {
        output["OutputKey"]: output["OutputValue"]
        for output in stack.get("Outputs", [])
    }


def get_bucket_name_for_stack(
    stack_name: str, stack: Optional[Dict[str, Any]] = None
) -> str:
    """Recover the asset bucket name from the stack tags, or make a new one."""
    if stack:
        for tag in stack.get("Tags") or []:
            if tag.get("Key") == BUCKET_NAME_TAG:
                return str(tag["Value"])

    return new_bucket_name(stack_name)
