"""
aws-install - install and uninstall a CloudFormation stack through change sets.
"""

__version__ = "1.0.0"

from .cli.app import create_cli
from .config import AwsSettings, InstallerConfig
from .deployment import DeploymentResult, DeploymentStatus, StackInstaller

__all__ = [
    "AwsSettings",
    "DeploymentResult",
    "DeploymentStatus",
    "InstallerConfig",
    "StackInstaller",
    "create_cli",
]
