"""
Asset bucket provisioning for packaged Lambda code.
"""

import asyncio
import logging
from typing import Any, Dict, List

from botocore.exceptions import ClientError

from ..aws import call, error_code, http_status
from ..errors import AssetPackagingError
from ..naming import validate_bucket_name

logger = logging.getLogger(__name__)

OWNER_TAG = "role"
CONFLICT_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists", "OperationAborted"}
MISSING_BUCKET_CODES = {"NoSuchBucket", "404"}
NO_LOCATION_CONSTRAINT_REGION = "us-east-1"

PUBLIC_ACCESS_BLOCK = {
    "BlockPublicAcls": True,
    "BlockPublicPolicy": True,
    "IgnorePublicAcls": True,
    "RestrictPublicBuckets": True,
}


def is_conflict(error: ClientError) -> bool:
    """A 409 from CreateBucket: somebody (usually us) got there first."""
    return http_status(error) == 409 or error_code(error) in CONFLICT_CODES


class BucketProvisioner:
    """
    Create, lock down and remove the asset bucket owned by a stack.

    The bucket name is persisted only as a tag on the stack, so every
    operation here is safe to repeat.
    """

    def __init__(self, s3: Any):
        self.s3 = s3

    async def exists(self, bucket_name: str) -> bool:
        try:
            await call(self.s3.head_bucket, Bucket=bucket_name)
        except ClientError as e:
            logger.debug(f"HeadBucket {bucket_name}: {error_code(e) or e}")
            return False
        return True

    async def ensure(self, stack_name: str, bucket_name: str, region: str) -> None:
        """
        Make sure ``bucket_name`` exists, is tagged and blocks public access.

        Args:
            stack_name: Owning stack, recorded in the ``role`` tag
            bucket_name: Asset bucket name
            region: Region to create the bucket in

        Raises:
            AssetPackagingError: ``bucket_name`` is not a valid S3 bucket name
        """
        if not validate_bucket_name(bucket_name):
            raise AssetPackagingError(f"Invalid asset bucket name: {bucket_name}")

        if not await self.exists(bucket_name):
            await self._create(stack_name, bucket_name, region)

        # Re-asserted on every run, not only at creation
        await call(
            self.s3.put_public_access_block,
            Bucket=bucket_name,
            PublicAccessBlockConfiguration=PUBLIC_ACCESS_BLOCK,
        )

        waiter = self.s3.get_waiter("bucket_exists")
        await call(waiter.wait, Bucket=bucket_name)

    async def _create(self, stack_name: str, bucket_name: str, region: str) -> None:
        params: Dict[str, Any] = {"Bucket": bucket_name}
        if region and region != NO_LOCATION_CONSTRAINT_REGION:
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}

        logger.info(f"Creating asset bucket {bucket_name} in {region}")
        try:
            await call(self.s3.create_bucket, **params)
            await call(
                self.s3.put_bucket_tagging,
                Bucket=bucket_name,
                Tagging={"TagSet": [{"Key": OWNER_TAG, "Value": stack_name}]},
            )
        except ClientError as e:
            if not is_conflict(e):
                raise
            logger.debug(f"Bucket {bucket_name} already exists: {error_code(e)}")

    async def list_object_keys(self, bucket_name: str) -> List[str]:
        """Keys of every object in the bucket (raises if the bucket is missing)."""

        def list_keys() -> List[str]:
            paginator = self.s3.get_paginator("list_objects_v2")
            keys = []
            for page in paginator.paginate(Bucket=bucket_name):
                keys.extend(obj["Key"] for obj in page.get("Contents", []))
            return keys

        return await call(list_keys)

    async def delete(self, bucket_name: str) -> bool:
        """
        Empty and delete the bucket.

        Returns:
            False when there was no bucket to delete
        """
        try:
            keys = await self.list_object_keys(bucket_name)
        except ClientError as e:
            if error_code(e) not in MISSING_BUCKET_CODES and http_status(e) != 404:
                raise
            logger.debug(f"Nothing to delete for bucket {bucket_name}: {error_code(e)}")
            return False

        await asyncio.gather(
            *(call(self.s3.delete_object, Bucket=bucket_name, Key=key) for key in keys)
        )
        await call(self.s3.delete_bucket, Bucket=bucket_name)
        logger.info(f"Deleted asset bucket {bucket_name} ({len(keys)} objects)")
        return True
