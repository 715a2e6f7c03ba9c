"""
Configuration for stack installs.

Handles AWS credentials/region resolution and per-stack installer settings.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import boto3

from .naming import env_prefix

POLL_INTERVAL = 2.0
DEFAULT_REGION = "us-east-1"


@dataclass
class AwsSettings:
    """Region and credentials used to build AWS clients."""

    region: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    profile: Optional[str] = None

    @classmethod
    def from_env(cls, **overrides: Optional[str]) -> "AwsSettings":
        """Build settings from the standard AWS environment variables.

        Explicit (non-empty) overrides win over the environment.
        """
        settings = cls(
            region=os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION"),
            access_key_id=os.environ.get("AWS_ACCESS_KEY_ID"),
            secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY"),
            profile=os.environ.get("AWS_PROFILE"),
        )
        for key, value in overrides.items():
            if value:
                setattr(settings, key, value)
        return settings

    @property
    def region_name(self) -> str:
        return self.region or DEFAULT_REGION

    def create_session(self) -> boto3.Session:
        """Create AWS session with appropriate credentials."""
        session_args: Dict[str, Any] = {"region_name": self.region_name}
        if self.access_key_id and self.secret_access_key:
            session_args["aws_access_key_id"] = self.access_key_id
            session_args["aws_secret_access_key"] = self.secret_access_key
        elif self.profile:
            session_args["profile_name"] = self.profile
        return boto3.Session(**session_args)


@dataclass
class InstallerConfig:
    """Configuration for a single installable stack."""

    stack_name: str
    template_path: Optional[Path] = None
    brand_name: Optional[str] = None
    force_when_rolled_back: bool = False
    poll_interval: float = POLL_INTERVAL
    capabilities: List[str] = field(default_factory=lambda: ["CAPABILITY_NAMED_IAM"])

    def __post_init__(self) -> None:
        if self.template_path is not None:
            self.template_path = Path(self.template_path)

    @property
    def display_name(self) -> str:
        """Name shown in progress output."""
        return self.brand_name or self.stack_name

    @property
    def env_prefix(self) -> str:
        """Environment variable prefix for template parameter options."""
        return env_prefix(self.stack_name)
