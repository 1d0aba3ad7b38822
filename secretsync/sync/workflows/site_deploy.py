"""Workflow for deploying a built static site to S3 behind CloudFront."""
import logging
from pathlib import Path
from typing import Union

from ..domains.aws_client import CredentialContext
from ..domains.deploy import bucket_name, invalidate, sync_directory
from ..domains.errors import DeployError
from ..domains.models import DeployReport

logger = logging.getLogger(__name__)

DEFAULT_BUILD_OUTPUT_DIR = "./build/"


def deploy_site(
    context: CredentialContext,
    branch: str,
    repo_name: str,
    distribution_id: str,
    build_output_dir: Union[str, Path] = DEFAULT_BUILD_OUTPUT_DIR,
    s3_client=None,
    cloudfront_client=None,
) -> DeployReport:
    """
    Sync the build directory into the branch bucket, then invalidate the CDN.

    Args:
        context: Region and credentials
        branch: Branch name used to derive the bucket name
        repo_name: Repository name used to derive the bucket name
        distribution_id: CloudFront distribution to invalidate
        build_output_dir: Directory holding the built static files
        s3_client: Optional preconfigured S3 client
        cloudfront_client: Optional preconfigured CloudFront client

    Raises:
        DeployError: If the build directory is missing or any AWS call fails
    """
    source = Path(build_output_dir)
    logger.info(f"Using build output directory: {source}")
    if not source.is_dir():
        raise DeployError(f"Build output directory '{source}' not found!")
    if not distribution_id:
        raise DeployError("CloudFront distribution ID is required")

    bucket = bucket_name(branch, repo_name, context.region)
    logger.info(f"Target S3 Bucket: s3://{bucket}")

    s3_client = s3_client or context.client("s3")
    report = sync_directory(s3_client, source, bucket)

    logger.info("Invalidating CDN cache")
    cloudfront_client = cloudfront_client or context.client("cloudfront")
    report.invalidation_id = invalidate(cloudfront_client, distribution_id)

    logger.info(
        f"Deployment to s3://{bucket} completed. "
        f"Uploaded: {len(report.uploaded)}, Deleted: {len(report.deleted)}, Unchanged: {len(report.unchanged)}"
    )
    return report
