"""
Naming helpers for CLI options, environment variables and asset buckets.
"""

import re
import uuid
from typing import List

WORD_PATTERN = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+")

# S3 bucket names: 3-63 chars, lowercase letters, digits, dots and hyphens
BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")
MAX_BUCKET_NAME_LENGTH = 63


def split_words(name: str) -> List[str]:
    """
    Split an identifier into words.

    Handles camel, pascal, snake and kebab case: ``StageName`` gives
    ``["Stage", "Name"]`` and ``stage-name`` gives ``["stage", "name"]``.
    """
    return WORD_PATTERN.findall(name)


def kebab_case(name: str) -> str:
    """``StageName`` -> ``stage-name``"""
    return "-".join(word.lower() for word in split_words(name))


def env_prefix(name: str) -> str:
    """``my-stack`` -> ``MY_STACK``"""
    return "_".join(word.upper() for word in split_words(name))


def new_bucket_name(stack_name: str) -> str:
    """
    Synthesize a globally unique asset bucket name for a stack.

    Args:
        stack_name: CloudFormation stack name (letters, digits and hyphens)

    Returns:
        ``<stack-name>-<32 hex chars>``, trimmed to the S3 length limit
    """
    suffix = uuid.uuid4().hex
    prefix = stack_name.lower()[: MAX_BUCKET_NAME_LENGTH - len(suffix) - 1]
    return f"{prefix}-{suffix}"


def validate_bucket_name(name: str) -> bool:
    return bool(BUCKET_NAME_PATTERN.match(name)) and ".." not in name
