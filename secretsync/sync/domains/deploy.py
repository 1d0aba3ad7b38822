"""S3 static site mirroring and CloudFront invalidation."""
import logging
import mimetypes
import re
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from .errors import DeployError
from .models import DeployReport

logger = logging.getLogger(__name__)

DELETE_BATCH_SIZE = 1000


def bucket_name(branch: str, repo: str, region: str) -> str:
    """
    Derive the site bucket name for a branch.

    The branch is lower-cased and every character outside [a-z0-9-] becomes '-':
    bucket_name("Feature/X", "Site", "us-east-1") -> "feature-x-site-us-east-1-static-s3"
    """
    branch_part = re.sub(r"[^a-z0-9-]", "-", branch.lower())
    return f"{branch_part}-{repo.lower()}-{region.lower()}-static-s3"


def _local_files(source_dir: Path) -> Dict[str, Path]:
    files = {}
    for path in sorted(source_dir.rglob("*")):
        if path.is_file():
            files[path.relative_to(source_dir).as_posix()] = path
    return files


def _remote_objects(s3_client, bucket: str) -> Dict[str, Tuple[int, datetime]]:
    objects = {}
    paginator = s3_client.get_paginator("list_objects_v2")
    for page in paginator.paginate(Bucket=bucket):
        for obj in page.get("Contents", []) or []:
            key = str(obj.get("Key", "") or "")
            if key:
                objects[key] = (int(obj.get("Size", 0)), obj.get("LastModified"))
    return objects


def _needs_upload(path: Path, remote: Tuple[int, datetime]) -> bool:
    size, last_modified = remote
    stat = path.stat()
    if stat.st_size != size:
        return True
    if last_modified is None:
        return True
    local_mtime = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
    return local_mtime > last_modified


def _chunks(items: List[str], size: int) -> Iterable[List[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def sync_directory(s3_client, source_dir: Path, bucket: str) -> DeployReport:
    """
    Mirror a local directory into a bucket, deleting keys with no local file.

    A file is uploaded when it is missing remotely, differs in size, or is
    newer than the remote copy.

    Raises:
        DeployError: If any S3 call fails
    """
    report = DeployReport(bucket=bucket)
    local = _local_files(source_dir)

    try:
        remote = _remote_objects(s3_client, bucket)

        for key, path in local.items():
            if key in remote and not _needs_upload(path, remote[key]):
                report.unchanged.append(key)
                continue
            content_type, _ = mimetypes.guess_type(key)
            extra = {"ContentType": content_type} if content_type else {}
            logger.info(f"upload: {key} to s3://{bucket}/{key}")
            if extra:
                s3_client.upload_file(str(path), bucket, key, ExtraArgs=extra)
            else:
                s3_client.upload_file(str(path), bucket, key)
            report.uploaded.append(key)

        stale = sorted(key for key in remote if key not in local)
        for batch in _chunks(stale, DELETE_BATCH_SIZE):
            for key in batch:
                logger.info(f"delete: s3://{bucket}/{key}")
            response = s3_client.delete_objects(
                Bucket=bucket,
                Delete={"Objects": [{"Key": key} for key in batch], "Quiet": True},
            )
            # Quiet mode only reports failures, per key, without raising
            errors = response.get("Errors", []) or []
            failed = {str(err.get("Key", "")) for err in errors}
            report.deleted.extend(key for key in batch if key not in failed)
            if errors:
                details = ", ".join(f"{err.get('Key')} ({err.get('Code')})" for err in errors)
                raise DeployError(f"S3 sync to s3://{bucket} failed to delete: {details}")
    except (ClientError, BotoCoreError) as e:
        raise DeployError(f"S3 sync to s3://{bucket} failed: {e}") from e

    return report


def invalidate(cloudfront_client, distribution_id: str, paths: Iterable[str] = ("/*",)) -> str:
    """
    Create a CloudFront invalidation and return its id.

    Raises:
        DeployError: If the invalidation request fails
    """
    items = list(paths)
    try:
        response = cloudfront_client.create_invalidation(
            DistributionId=distribution_id,
            InvalidationBatch={
                "Paths": {"Quantity": len(items), "Items": items},
                "CallerReference": f"secretsync-{time.time_ns()}",
            },
        )
    except (ClientError, BotoCoreError) as e:
        raise DeployError(f"CloudFront invalidation failed for {distribution_id}: {e}") from e

    invalidation_id = response["Invalidation"]["Id"]
    logger.info(f"Created invalidation {invalidation_id} for distribution {distribution_id}")
    return invalidation_id
