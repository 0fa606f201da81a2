import time
import uuid
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.logging.logger import Log
from app.ocr.base import BaseOcrProvider
from app.ocr.exceptions import OcrError, OcrUnavailableError
from app.ocr.models import OcrResult


class TextractAdapter(BaseOcrProvider):
    """Cloud OCR through the asynchronous Textract document analysis API.

    The document is staged in S3 under `staging_prefix`, an analysis job is
    started and polled until it finishes, every result page is collected, and
    the staged object is removed afterwards.
    """

    name = "textract"
    FEATURE_TYPES = ["TABLES", "FORMS", "LAYOUT"]

    def __init__(
        self,
        *,
        bucket: str,
        staging_prefix: str = "textract-staging/",
        region: str | None = None,
        poll_interval_seconds: float = 2.0,
        max_polls: int = 150,
        s3_client: Any | None = None,
        textract_client: Any | None = None,
    ) -> None:
        self._bucket = bucket
        self._staging_prefix = staging_prefix
        self._poll_interval = poll_interval_seconds
        self._max_polls = max_polls
        self._s3 = s3_client if s3_client is not None else boto3.client("s3", region_name=region)
        self._textract = (
            textract_client
            if textract_client is not None
            else boto3.client("textract", region_name=region)
        )

    def is_available(self) -> bool:
        return bool(self._bucket)

    def extract_text(self, pdf_bytes: bytes) -> OcrResult:
        if not self.is_available():
            raise OcrUnavailableError("Textract needs an S3 bucket for staging")
        key = f"{self._staging_prefix}{uuid.uuid4().hex}.pdf"
        try:
            self._s3.put_object(
                Bucket=self._bucket, Key=key, Body=pdf_bytes, ContentType="application/pdf"
            )
            response = self._textract.start_document_analysis(
                DocumentLocation={"S3Object": {"Bucket": self._bucket, "Name": key}},
                FeatureTypes=self.FEATURE_TYPES,
            )
            blocks = self._collect_blocks(response["JobId"])
        except (BotoCoreError, ClientError) as exc:
            raise OcrError(f"Textract analysis failed: {exc}") from exc
        finally:
            self._remove_staged(key)

        return self._collect_lines(blocks)

    def _collect_blocks(self, job_id: str) -> list[dict[str, Any]]:
        """Wait for the job, then follow NextToken through every result page."""
        response = self._wait_for(job_id)
        blocks = list(response.get("Blocks", []))
        next_token = response.get("NextToken")
        while next_token:
            response = self._textract.get_document_analysis(JobId=job_id, NextToken=next_token)
            blocks.extend(response.get("Blocks", []))
            next_token = response.get("NextToken")
        return blocks

    def _wait_for(self, job_id: str) -> dict[str, Any]:
        for _ in range(self._max_polls):
            time.sleep(self._poll_interval)
            response = self._textract.get_document_analysis(JobId=job_id)
            status = response.get("JobStatus")
            if status == "SUCCEEDED":
                return response
            if status == "PARTIAL_SUCCESS":
                Log.warning(f"Textract job {job_id} only partially succeeded")
                return response
            if status == "FAILED":
                reason = response.get("StatusMessage") or "no reason given"
                raise OcrError(f"Textract job {job_id} failed: {reason}")
        raise OcrError(f"Textract job {job_id} still running after {self._max_polls} polls")

    def _remove_staged(self, key: str) -> None:
        try:
            self._s3.delete_object(Bucket=self._bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            Log.warning(f"Could not remove staged Textract object {key}: {exc}")

    @staticmethod
    def _collect_lines(blocks: list[dict[str, Any]]) -> OcrResult:
        lines = [b for b in blocks if b.get("BlockType") == "LINE" and b.get("Text")]
        pages = sum(1 for b in blocks if b.get("BlockType") == "PAGE")
        confidences = [float(b["Confidence"]) for b in lines if "Confidence" in b]
        confidence = sum(confidences) / len(confidences) if confidences else None
        return OcrResult(
            text="\n".join(b["Text"] for b in lines),
            confidence=confidence,
            page_count=pages,
        )
