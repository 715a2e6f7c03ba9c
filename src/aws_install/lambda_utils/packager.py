"""Package Lambda code referenced by a template and upload it to the asset bucket."""

import asyncio
import copy
import io
import logging
import os
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..aws import call
from ..errors import AssetPackagingError
from .bucket import BucketProvisioner
from .template import dump_template, load_template, read_template

logger = logging.getLogger(__name__)

LAMBDA_FUNCTION_TYPE = "AWS::Lambda::Function"


def has_local_code(resource: Dict[str, Any]) -> bool:
    """A Lambda function whose ``Code`` is a local directory path."""
    if not isinstance(resource, dict) or resource.get("Type") != LAMBDA_FUNCTION_TYPE:
        return False
    code = (resource.get("Properties") or {}).get("Code")
    return isinstance(code, str) and bool(code)


def build_archive(code_dir: Path) -> bytes:
    """Create a ZIP of every file under ``code_dir``.

    Args:
        code_dir: Directory containing Lambda function code

    Returns:
        The archive bytes; entries are relative to ``code_dir``
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zipf:
        for root, dirs, files in os.walk(code_dir):
            dirs.sort()
            for file in sorted(files):
                file_path = Path(root) / file
                archive_path = file_path.relative_to(code_dir)
                zipf.write(file_path, archive_path.as_posix())
    return buffer.getvalue()


def bucket_key_for(code_dir: Path, cwd: Optional[Path] = None) -> str:
    """Object key: the code directory relative to the working directory + ``.zip``."""
    relative = os.path.relpath(code_dir, cwd or Path.cwd())
    return Path(relative).as_posix() + ".zip"


class AssetPackager:
    """Rewrite local Lambda ``Code`` paths in a template to uploaded archives."""

    def __init__(self, s3: Any, provisioner: Optional[BucketProvisioner] = None) -> None:
        """Initialize the packager.

        Args:
            s3: S3 client used for uploads
            provisioner: Bucket provisioner (built from ``s3`` if omitted)
        """
        self.s3 = s3
        self.provisioner = provisioner or BucketProvisioner(s3)

    async def package_template(
        self,
        stack_name: str,
        bucket_name: str,
        template_path: Union[str, Path],
        region: str,
    ) -> str:
        """Package every local Lambda code directory and render the template.

        Args:
            stack_name: Stack owning the asset bucket
            bucket_name: Asset bucket to upload to
            template_path: Path to the CloudFormation template
            region: Region of the asset bucket

        Returns:
            Template body ready to submit
        """
        template_path = Path(template_path)
        template_body = read_template(template_path)
        await self.provisioner.ensure(stack_name, bucket_name, region)

        template = load_template(template_body)
        resources = template.get("Resources") or {}

        packaged: List[Tuple[str, Dict[str, Any]]] = await asyncio.gather(
            *(
                self._package_resource(name, resource, bucket_name, template_path.parent)
                for name, resource in resources.items()
            )
        )

        return dump_template({**template, "Resources": dict(packaged)})

    async def _package_resource(
        self,
        name: str,
        resource: Dict[str, Any],
        bucket_name: str,
        root_path: Path,
    ) -> Tuple[str, Dict[str, Any]]:
        if not has_local_code(resource):
            return name, resource
        return name, await self.package_lambda_code(name, resource, bucket_name, root_path)

    async def package_lambda_code(
        self,
        name: str,
        resource: Dict[str, Any],
        bucket_name: str,
        root_path: Path,
    ) -> Dict[str, Any]:
        """Zip and upload one function's code; return the rewritten resource."""
        code_dir = (root_path / resource["Properties"]["Code"]).resolve()
        if not code_dir.is_dir():
            raise AssetPackagingError(
                f"Code directory for {name} not found: {resource['Properties']['Code']}"
            )

        body = await call(build_archive, code_dir)
        key = bucket_key_for(code_dir, Path.cwd().resolve())

        logger.info(f"Uploading {name} code to s3://{bucket_name}/{key} ({len(body)} bytes)")
        await call(self.s3.put_object, Body=body, Bucket=bucket_name, Key=key)

        packaged = copy.deepcopy(resource)
        packaged["Properties"]["Code"] = {"S3Key": key, "S3Bucket": bucket_name}
        return packaged
