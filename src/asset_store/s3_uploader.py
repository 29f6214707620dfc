"""S3-compatible asset store for exported attachments.

Attachments referenced from the export (images, PDFs, ...) must live at a
durable public URL before Notion can embed them. Two modes are supported:

    upload   - the local file is uploaded to ``bucket`` under
               ``uploads/{timestamp}-{unique}-{name}`` and its public URL returned
    existing - the attachment already lives in the bucket the export was
               produced from; its key is checked with HeadObject and the
               public URL of that object returned

boto3 is synchronous, so calls run in a worker thread to keep the event
loop free for other documents.
"""

import asyncio
import logging
import mimetypes
import time
import uuid
from pathlib import Path
from typing import Any, Callable, Optional
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import AssetError

logger = logging.getLogger(__name__)

DEFAULT_PUBLIC_URL_TEMPLATE = "https://{bucket}.s3.{region}.amazonaws.com/{key}"

ASSET_MODES = ("upload", "existing")


class S3AssetStore:
    """Rehomes local attachments to durable S3 URLs.

    Example:
        >>> store = S3AssetStore(bucket="wiki-assets", region="eu-west-1")
        >>> url = await store.upload_file(Path("export/uploads/logo.png"), "uploads/logo.png")
    """

    def __init__(
        self,
        bucket: str,
        region: str,
        endpoint_url: Optional[str] = None,
        mode: str = "upload",
        original_bucket: Optional[str] = None,
        public_url_template: str = DEFAULT_PUBLIC_URL_TEMPLATE,
        client: Optional[Any] = None,
        clock: Callable[[], float] = time.time,
        unique_id: Callable[[], str] = lambda: uuid.uuid4().hex[:8],
    ):
        """Initialize the asset store.

        Args:
            bucket: Destination bucket for uploads
            region: Bucket region, used in public URLs
            endpoint_url: Custom S3 endpoint (S3-compatible providers)
            mode: "upload" or "existing"
            original_bucket: Bucket checked in "existing" mode (defaults to ``bucket``)
            public_url_template: Format string with {bucket}, {region} and {key}
            client: Preconfigured boto3 S3 client
            clock: Time source for upload key prefixes
            unique_id: Source of the key segment that keeps concurrent uploads
                of same-named files apart

        Raises:
            ValueError: If the mode is unknown
        """
        if mode not in ASSET_MODES:
            raise ValueError(f"Unknown asset mode '{mode}', expected one of {ASSET_MODES}")

        self._bucket = bucket
        self._region = region
        self._mode = mode
        self._original_bucket = original_bucket or bucket
        self._public_url_template = public_url_template
        self._clock = clock
        self._unique_id = unique_id
        self._client = client or boto3.client(
            "s3", region_name=region or None, endpoint_url=endpoint_url or None
        )

    @property
    def mode(self) -> str:
        return self._mode

    async def upload_file(self, local_path: Path, reference: str) -> str:
        """Return a durable URL for an attachment.

        Args:
            local_path: Absolute path of the attachment inside the export
            reference: Attachment path as written in the document (decoded)

        Returns:
            Public URL of the stored object

        Raises:
            AssetError: If the file is unreadable or the object is missing
        """
        if self._mode == "existing":
            return await asyncio.to_thread(self._resolve_existing, reference)
        return await asyncio.to_thread(self._upload, Path(local_path))

    def _upload(self, path: Path) -> str:
        if not path.is_file():
            raise AssetError(str(path), "file not found")

        key = f"uploads/{int(self._clock() * 1000)}-{self._unique_id()}-{path.name}"
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

        try:
            with path.open("rb") as body:
                self._client.put_object(
                    Bucket=self._bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
        except OSError as e:
            raise AssetError(str(path), f"unreadable: {e}") from e
        except (BotoCoreError, ClientError) as e:
            raise AssetError(str(path), f"upload failed: {e}") from e

        url = self._public_url(self._bucket, key)
        logger.info(f"Uploaded asset {path.name} to {url}")
        return url

    def _resolve_existing(self, reference: str) -> str:
        key = reference.removeprefix("./").lstrip("/")
        try:
            self._client.head_object(Bucket=self._original_bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise AssetError(reference, f"not found in bucket {self._original_bucket}: {e}") from e

        url = self._public_url(self._original_bucket, key)
        logger.debug(f"Resolved existing asset {reference} to {url}")
        return url

    def _public_url(self, bucket: str, key: str) -> str:
        return self._public_url_template.format(
            bucket=bucket,
            region=self._region,
            key=quote(key, safe="/-_.~"),
        )
