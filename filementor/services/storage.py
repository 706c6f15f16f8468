"""S3/MinIO storage for raw uploads."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator
from uuid import UUID

import aioboto3
from botocore.config import Config

from filementor.config import Settings, get_settings


class StorageService:
    """Raw file bytes in an S3-compatible bucket, keyed per user."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.session = aioboto3.Session()
        self.bucket = self.settings.s3_bucket
        self.config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        )

    @asynccontextmanager
    async def _get_client(self) -> AsyncGenerator:
        async with self.session.client(
            "s3",
            endpoint_url=self.settings.s3_endpoint_url,
            aws_access_key_id=self.settings.s3_access_key,
            aws_secret_access_key=self.settings.s3_secret_key,
            region_name=self.settings.s3_region,
            config=self.config,
        ) as client:
            yield client

    @staticmethod
    def build_key(user_id: UUID, file_id: UUID, filename: str) -> str:
        """Object key, prefixed by owner so one user's uploads share a prefix."""
        return f"{user_id}/{file_id}/{filename}"

    async def upload_file(
        self,
        user_id: UUID,
        file_id: UUID,
        filename: str,
        content: bytes,
        content_type: str,
    ) -> str:
        """Upload bytes and return the object key."""
        key = self.build_key(user_id, file_id, filename)
        async with self._get_client() as client:
            await client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
                Metadata={"user_id": str(user_id), "file_id": str(file_id)},
            )
        return key

    async def download_file(self, key: str) -> bytes:
        async with self._get_client() as client:
            response = await client.get_object(Bucket=self.bucket, Key=key)
            return await response["Body"].read()

    async def delete_file(self, key: str) -> None:
        async with self._get_client() as client:
            await client.delete_object(Bucket=self.bucket, Key=key)


# Singleton instance
storage_service = StorageService()
