"""Cloudflare R2 client for shared price-cache entries.

Uses the S3-compatible API via boto3. Each cache entry is one gzip JSON
object so several app instances can share resolved prices.
NEVER logs credentials.
"""
import gzip
import json
import logging
from typing import Any

import boto3

from .r2_config import R2Settings

logger = logging.getLogger(__name__)

CACHE_FOLDER = 'pricing/cache'
MISSING_CODES = ('NoSuchKey', '404', 'NotFound')


def _is_missing(error: Exception) -> bool:
    response = getattr(error, 'response', None)
    if not isinstance(response, dict):
        return False
    return response.get('Error', {}).get('Code', '') in MISSING_CODES


class R2Client:
    """S3-compatible client for price cache entries."""

    def __init__(self, settings: R2Settings | None = None, s3_client=None):
        """
        Args:
            settings: R2 settings; read from the environment when omitted
            s3_client: Optional boto3 S3 client (for testing with FakeR2)
        """
        settings = settings or R2Settings.from_env()
        self._bucket = settings.bucket
        self._prefix = settings.prefix

        if s3_client is not None:
            self._client = s3_client
        else:
            self._client = boto3.client(
                's3',
                endpoint_url=settings.endpoint,
                aws_access_key_id=settings.access_key,
                aws_secret_access_key=settings.secret_key,
                region_name='auto',
            )

    def _folder(self) -> str:
        if self._prefix:
            return f"{self._prefix.rstrip('/')}/{CACHE_FOLDER}/"
        return f"{CACHE_FOLDER}/"

    def make_key(self, cache_key: str) -> str:
        """Object key for a cache key: {prefix}/pricing/cache/{cache_key}.json.gz"""
        return f"{self._folder()}{cache_key}.json.gz"

    def put_entry(self, cache_key: str, payload: dict[str, Any]) -> str:
        """Store a gzip-compressed JSON cache entry and return its object key.

        Raises:
            ClientError on R2 failure
        """
        key = self.make_key(cache_key)
        json_bytes = json.dumps(payload, separators=(',', ':')).encode('utf-8')
        compressed = gzip.compress(json_bytes)

        self._client.put_object(
            Bucket=self._bucket,
            Key=key,
            Body=compressed,
            ContentType='application/json',
            ContentEncoding='gzip',
        )
        logger.info(f"R2: Stored cache entry {cache_key} ({len(compressed)} bytes)")
        return key

    def get_entry(self, cache_key: str) -> dict[str, Any] | None:
        """Fetch and decompress a cache entry, or None if it does not exist."""
        key = self.make_key(cache_key)
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
        except Exception as e:
            # botocore ClientError and the test fake both carry .response
            if _is_missing(e):
                logger.debug(f"R2: Not found {cache_key}")
                return None
            logger.warning(f"R2: Error getting {key}: {e}")
            raise
        compressed = response['Body'].read()
        return json.loads(gzip.decompress(compressed).decode('utf-8'))

    def delete_entry(self, cache_key: str) -> None:
        self._client.delete_object(Bucket=self._bucket, Key=self.make_key(cache_key))

    def list_entries(self) -> list[str]:
        """Cache keys currently stored under the cache folder."""
        folder = self._folder()
        keys = []
        paginator = self._client.get_paginator('list_objects_v2')
        for page in paginator.paginate(Bucket=self._bucket, Prefix=folder):
            for obj in page.get('Contents', []):
                name = obj['Key'][len(folder):]
                if name.endswith('.json.gz'):
                    keys.append(name[:-len('.json.gz')])
        return keys


def get_r2_client() -> R2Client | None:
    """Get R2 client if configured, else None."""
    settings = R2Settings.from_env()
    if not settings.usable:
        return None
    return R2Client(settings)
