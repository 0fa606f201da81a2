from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.storage.base import BaseDocumentStore
from app.storage.exceptions import DocumentNotFoundError, StorageError
from app.storage.models import DocumentRef


class S3DocumentStore(BaseDocumentStore):
    """Reads filings from an S3 bucket."""

    def __init__(self, bucket: str, client: Any | None = None, region: str | None = None) -> None:
        if not bucket:
            raise ValueError("s3_bucket_name is required for storage_backend=s3")
        self._bucket = bucket
        self._client = client if client is not None else boto3.client("s3", region_name=region)

    def list(self, prefix: str) -> list[DocumentRef]:
        refs: list[DocumentRef] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
                for item in page.get("Contents", []):
                    key = item["Key"]
                    if key.endswith("/") or not key.lower().endswith(".pdf"):
                        continue
                    refs.append(DocumentRef(key=key, size=int(item.get("Size", 0))))
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Cannot list s3://{self._bucket}/{prefix}: {exc}") from exc
        return sorted(refs, key=lambda ref: ref.key)

    def fetch_bytes(self, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            return bytes(response["Body"].read())
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in ("NoSuchKey", "404"):
                raise DocumentNotFoundError(f"s3://{self._bucket}/{key} not found") from exc
            raise StorageError(f"Cannot download s3://{self._bucket}/{key}: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Cannot download s3://{self._bucket}/{key}: {exc}") from exc
