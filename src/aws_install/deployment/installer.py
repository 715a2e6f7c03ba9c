"""
Install and uninstall a CloudFormation stack through change sets.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..cloudformation.change_set import ChangeSetOrchestrator
from ..cloudformation.events import EventTailer, EventTailerHandle
from ..cloudformation.rollback import Confirm, RollbackResolver
from ..cloudformation.stack_manager import (
    StackManager,
    get_bucket_name_for_stack,
    get_stack_outputs,
)
from ..cloudformation.status import is_rollback
from ..cloudformation.waiter import StackWaiter
from ..config import AwsSettings, InstallerConfig
from ..errors import PostExecutionRollbackError
from ..lambda_utils.bucket import BucketProvisioner
from ..lambda_utils.packager import AssetPackager
from ..lambda_utils.template import (
    get_parameter_schema,
    get_parameters,
    load_template,
    read_template,
)
from ..progress import NullProgressLogger, ProgressLogger

logger = logging.getLogger(__name__)


class DeploymentStatus(Enum):
    """Outcome of an install or uninstall."""

    SUCCESS = "success"
    NO_CHANGES = "no_changes"
    NOTHING_TO_UNINSTALL = "nothing_to_uninstall"


@dataclass
class DeploymentResult:
    """Result of a deployment operation."""

    status: DeploymentStatus
    stack_name: str
    duration: float = 0.0
    bucket_name: Optional[str] = None
    change_set_id: Optional[str] = None
    outputs: Dict[str, str] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return self.status == DeploymentStatus.SUCCESS


async def stop_events(events: EventTailerHandle, failing: bool = False) -> None:
    """Stop the event tailer and wait for it.

    While another error is propagating, a tailer failure is logged instead of
    replacing it.
    """
    events.stop()
    if not failing:
        await events.join()
        return
    try:
        await events.join()
    except Exception as e:
        logger.warning(f"Event tailer failed while handling another error: {e}")


class StackInstaller:
    """Compose the stack lifecycle components into install/uninstall flows."""

    def __init__(
        self,
        config: InstallerConfig,
        settings: Optional[AwsSettings] = None,
        manager: Optional[StackManager] = None,
        progress: Optional[ProgressLogger] = None,
        confirm: Optional[Confirm] = None,
    ):
        """
        Initialize installer.

        Args:
            config: Stack name, template and behaviour flags
            settings: AWS region and credentials (ignored when ``manager`` is given)
            manager: Stack manager holding the AWS clients
            progress: Progress output, silent by default
            confirm: Asked before deleting a rolled back stack
        """
        self.config = config
        self.stack_name = config.stack_name
        self.manager = manager or StackManager(settings)
        self.region = self.manager.region
        self.progress = progress or NullProgressLogger()

        interval = config.poll_interval
        self.waiter = StackWaiter(self.manager, self.progress, interval)
        self.tailer = EventTailer(self.manager, self.stack_name, self.progress, interval)
        self.rollback = RollbackResolver(
            self.manager, self.waiter, confirm, config.force_when_rolled_back
        )
        self.change_sets = ChangeSetOrchestrator(
            self.manager.cloudformation, self.progress, interval, config.capabilities
        )
        self.provisioner = BucketProvisioner(self.manager.s3)
        self.packager = AssetPackager(self.manager.s3, self.provisioner)

    async def install(self, values: Optional[Dict[str, Any]] = None) -> DeploymentResult:
        """
        Create or update the stack from the configured template.

        Args:
            values: Template parameter values keyed by parameter or option name

        Returns:
            DeploymentResult with SUCCESS, or NO_CHANGES when the stack already
            matches the template
        """
        if self.config.template_path is None:
            raise ValueError("Installing requires a template path")

        start_time = time.time()
        self.progress.group(f"Install {self.config.display_name}")
        try:
            template_body = read_template(self.config.template_path)
            await self.manager.validate_template(template_body)

            stack = await self.manager.get_active_stack(self.stack_name)
            if stack:
                stack = await self.rollback.resolve(stack)

            if stack:
                self.progress.group("Wait for running tasks")
                await self.waiter.wait_until_terminal(stack)
                self.progress.group_end()

            self.progress.info("Update change set" if stack else "Create change set")

            self.progress.info("Process template assets")
            schema = get_parameter_schema(load_template(template_body))
            parameters = get_parameters(schema, values or {})
            bucket_name = get_bucket_name_for_stack(self.stack_name, stack)
            logger.debug(
                f"Packaging {self.config.template_path} into {bucket_name} with "
                f"parameters {[p['ParameterKey'] for p in parameters]}"
            )
            packaged_body = await self.packager.package_template(
                self.stack_name, bucket_name, self.config.template_path, self.region
            )

            self.progress.group("Wait for change set")
            change_set = await self.change_sets.create_and_wait(
                stack, self.stack_name, packaged_body, bucket_name, parameters
            )
            if not change_set:
                self.progress.info("No changes found")
                self.progress.group_end()
                return DeploymentResult(
                    status=DeploymentStatus.NO_CHANGES,
                    stack_name=self.stack_name,
                    duration=time.time() - start_time,
                    bucket_name=bucket_name,
                )
            self.progress.group_end()

            # A CREATE change set has just brought the stack into existence
            stack = await self.manager.get_active_stack(self.stack_name) or {
                "StackName": self.stack_name
            }

            self.progress.group("Execute change set")
            self.change_sets.show_changes(change_set)
            self.progress.group_end()

            events = await self.tailer.start(stack)
            try:
                await self.change_sets.execute(change_set)
                self.progress.group("Wait for stack ready")
                await self.waiter.wait_until_terminal(stack)
                self.progress.group_end()
            except BaseException:
                await stop_events(events, failing=True)
                raise
            await stop_events(events)

            description = await self.manager.describe_stack(stack)
            if is_rollback(description["StackStatus"]):
                raise PostExecutionRollbackError(self.stack_name, description["StackStatus"])

            self.progress.info("Install complete")
            return DeploymentResult(
                status=DeploymentStatus.SUCCESS,
                stack_name=self.stack_name,
                duration=time.time() - start_time,
                bucket_name=bucket_name,
                change_set_id=change_set["ChangeSetId"],
                outputs=get_stack_outputs(description),
            )
        finally:
            self.progress.group_end()

    async def uninstall(self) -> DeploymentResult:
        """Delete the asset bucket and the stack."""
        start_time = time.time()
        self.progress.group(f"Uninstall {self.config.display_name}")
        try:
            self.progress.info("Remove system stack")
            stack = await self.manager.get_active_stack(self.stack_name)
            if not stack:
                self.progress.info("Nothing to uninstall")
                return DeploymentResult(
                    status=DeploymentStatus.NOTHING_TO_UNINSTALL,
                    stack_name=self.stack_name,
                )

            self.progress.info("Delete assets")
            bucket_name = get_bucket_name_for_stack(self.stack_name, stack)
            await self.provisioner.delete(bucket_name)

            events = await self.tailer.start(stack)
            try:
                await self.manager.delete_stack(stack)
                self.progress.group("Wait for uninstall")
                await self.waiter.wait_until_terminal(stack)
                self.progress.group_end()
            except BaseException:
                await stop_events(events, failing=True)
                raise
            await stop_events(events)

            self.progress.info("Uninstall complete")
            return DeploymentResult(
                status=DeploymentStatus.SUCCESS,
                stack_name=self.stack_name,
                duration=time.time() - start_time,
                bucket_name=bucket_name,
            )
        finally:
            self.progress.group_end()
