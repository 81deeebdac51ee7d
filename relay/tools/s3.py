"""
S3 Tools

Fetches raw inbound email stored by an SES receipt rule S3 action.
"""

import boto3
from botocore.exceptions import ClientError
import structlog

from relay.config import get_settings
from relay.exceptions import ParseFailure

log = structlog.get_logger()


def _get_client():
    """Get S3 client."""
    settings = get_settings()
    return boto3.client("s3", **settings.s3_config)


def fetch_raw_email(bucket: str, key: str) -> bytes:
    """
    Fetch raw email content from S3.

    Args:
        bucket: S3 bucket name
        key: S3 object key

    Returns:
        Raw email content as bytes

    Raises:
        ParseFailure: If the object cannot be read
    """
    log.info("fetching_email_from_s3", bucket=bucket, key=key)

    client = _get_client()

    try:
        response = client.get_object(Bucket=bucket, Key=key)
        content = response["Body"].read()
    except ClientError as e:
        log.error(
            "s3_fetch_failed",
            bucket=bucket,
            key=key,
            error=str(e),
        )
        raise ParseFailure(
            f"could not read s3://{bucket}/{key}: "
            f"{e.response['Error']['Code']}"
        ) from e

    log.debug(
        "email_fetched_from_s3",
        bucket=bucket,
        key=key,
        size_bytes=len(content),
    )
    return content
