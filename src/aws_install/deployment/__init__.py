"""
Install/uninstall orchestration for a single CloudFormation stack.
"""

from .installer import DeploymentResult, DeploymentStatus, StackInstaller

__all__ = [
    "DeploymentResult",
    "DeploymentStatus",
    "StackInstaller",
]
