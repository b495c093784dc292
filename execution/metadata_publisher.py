"""execution/metadata_publisher.py

Uploads token metadata (and optional image) to the pump.fun IPFS endpoint.

Request: multipart/form-data with fields
    name, symbol, description, showName, twitter?, telegram?, website?, file?
Response: {"metadata": {"name", "symbol", ...}, "metadataUri": "ipfs://..."}

No retry at this layer; callers decide.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

import aiohttp

from config.launch_schema import DEFAULT_METADATA_URL
from execution.launch_errors import MetadataUploadError, NetworkError, SchemaError
from execution.models import LaunchOptions, LaunchRequest, MetadataRecord

logger = logging.getLogger(__name__)

IMAGE_FILENAME = "token_image.png"
IMAGE_CONTENT_TYPE = "image/png"


class MetadataPublisher:
    """
    Publishes launch metadata and returns the hosted record.

    Attributes:
        session: Shared aiohttp session (owned by the caller).
        metadata_url: Upload endpoint.
    """

    def __init__(self, session: aiohttp.ClientSession, *, metadata_url: str = DEFAULT_METADATA_URL):
        self.session = session
        self.metadata_url = metadata_url

    async def fetch_image(self, image_url: str) -> bytes:
        """Download the image referenced by the launch options.

        Raises:
            NetworkError: On transport failure or non-success status.
        """
        try:
            async with self.session.get(image_url) as response:
                if response.status >= 400:
                    raise NetworkError(f"Image fetch failed: HTTP {response.status} for {image_url}")
                return await response.read()
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Timeout fetching image {image_url}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Error fetching image {image_url}: {e}") from e

    def build_form(self, request: LaunchRequest, image: Optional[bytes] = None) -> aiohttp.MultipartWriter:
        """Assemble the multipart body; optional links are only sent when set."""
        opts = request.options
        fields = [
            ("name", request.name),
            ("symbol", request.ticker),
            ("description", request.description),
            ("showName", "true"),
        ]
        for key in ("twitter", "telegram", "website"):
            value = getattr(opts, key)
            if value:
                fields.append((key, value))

        form = aiohttp.MultipartWriter("form-data")
        for key, value in fields:
            part = form.append(value)
            part.set_content_disposition("form-data", name=key)

        if image is not None:
            part = form.append(image, {"Content-Type": IMAGE_CONTENT_TYPE})
            part.set_content_disposition("form-data", name="file", filename=IMAGE_FILENAME)
        return form

    async def publish(
        self,
        name: str,
        ticker: str,
        options: Optional[LaunchOptions] = None,
    ) -> MetadataRecord:
        """Upload metadata for a new token.

        Raises:
            NetworkError: Image fetch or upload transport failure.
            MetadataUploadError: Non-success status from the metadata host.
            SchemaError: Response body lacks the required fields.
        """
        request = LaunchRequest(name=name, ticker=ticker, options=options or LaunchOptions())

        image = None
        if request.options.image_url:
            image = await self.fetch_image(request.options.image_url)
            logger.info(f"[metadata] Fetched image ({len(image)} bytes)")

        form = self.build_form(request, image)
        try:
            async with self.session.post(self.metadata_url, data=form) as response:
                if not 200 <= response.status < 300:
                    logger.error(f"[metadata] Upload failed: HTTP {response.status} {response.reason}")
                    raise MetadataUploadError(response.status, response.reason or "")
                try:
                    payload = await response.json(content_type=None)
                except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
                    raise SchemaError(f"Metadata response is not JSON: {e}") from e
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Timeout uploading metadata to {self.metadata_url}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Error uploading metadata to {self.metadata_url}: {e}") from e

        record = MetadataRecord.from_response(payload)
        logger.info(f"[metadata] Uploaded: {record.metadata_uri}")
        return record
