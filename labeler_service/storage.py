"""
Thin S3 gateway used by the workers.

A single boto3 client is shared by every worker thread; boto3 clients are
safe for concurrent use.
"""

from __future__ import annotations

import logging
from typing import Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from .config import Settings, get_settings
from .errors import FetchError, StoreError

logger = logging.getLogger(__name__)


def get_s3_client(settings: Optional[Settings] = None):
    """Build an S3 client using the default credential chain."""
    settings = settings or get_settings()
    session = boto3.session.Session()
    return session.client(
        service_name="s3",
        region_name=settings.aws_region,
        endpoint_url=settings.s3_endpoint_url,
        config=BotoConfig(signature_version="s3v4"),
    )


class StorageGateway:
    def __init__(self, client) -> None:
        self.client = client

    def get(self, bucket: str, key: str) -> bytes:
        try:
            resp = self.client.get_object(Bucket=bucket, Key=key)
            body = resp["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except (BotoCoreError, ClientError) as exc:
            raise FetchError(f"Unable to download s3://{bucket}/{key}: {exc}", key=key) from exc

    def put(self, bucket: str, key: str, body: bytes, content_type: str) -> None:
        try:
            self.client.put_object(
                Bucket=bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StoreError(f"Failed to save s3://{bucket}/{key}: {exc}", key=key) from exc
        logger.debug("stored s3://%s/%s (%d bytes, %s)", bucket, key, len(body), content_type)
