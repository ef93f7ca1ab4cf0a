"""
Card image handling: download, encode through the asset codec, store.
Image problems never fail a card; the card is stored without an image.
"""

import abc
import asyncio
import logging
import pathlib
from typing import Awaitable, Callable, Optional, Protocol

import aiohttp
import boto3
import botocore.exceptions

from .. import constants
from ..errors import NotFoundError, RateLimitedError, RemoteError
from ..retry_controller import RetryController
from ..seed_config import SeedConfig

LOGGER = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30.0


class AssetCodec(Protocol):
    """Turns a downloaded image into the bytes we store"""

    content_type: str

    def encode(self, raw: bytes) -> bytes:
        """Optimize raw image bytes"""


class PassthroughCodec:
    """
    Codec that stores downloads untouched.
    Plug a real transcoder in its place to optimize images.
    """

    content_type = "image/webp"

    def encode(self, raw: bytes) -> bytes:
        """Return the download as is"""
        return raw


class AbstractAssetStore(abc.ABC):
    """
    Object storage that accepts bytes and hands back a public URL
    """

    @abc.abstractmethod
    def store(self, data: bytes, object_path: str, content_type: str) -> str:
        """
        Write data to object_path, replacing what is there
        :param data: Encoded image
        :param object_path: Path inside the store, e.g. "vow/en/1.webp"
        :param content_type: MIME type of data
        :return: Public URL of the stored object
        """


class LocalAssetStore(AbstractAssetStore):
    """
    Store images in a local directory
    """

    root: pathlib.Path

    def __init__(self, root: pathlib.Path) -> None:
        self.root = root

    def store(self, data: bytes, object_path: str, content_type: str) -> str:
        destination = self.root.joinpath(object_path)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(data)
        return destination.resolve().as_uri()


class S3AssetStore(AbstractAssetStore):
    """
    Store images in an S3 compatible bucket
    """

    logger: logging.Logger
    bucket_name: str
    public_url_base: str

    def __init__(
        self,
        bucket_name: str,
        endpoint_url: Optional[str] = None,
        public_url_base: Optional[str] = None,
    ) -> None:
        self.logger = logging.getLogger(__name__)
        self.bucket_name = bucket_name
        self.s3_client = boto3.client("s3", endpoint_url=endpoint_url or None)
        if public_url_base:
            self.public_url_base = public_url_base.rstrip("/")
        elif endpoint_url:
            self.public_url_base = f"{endpoint_url.rstrip('/')}/{bucket_name}"
        else:
            self.public_url_base = f"https://{bucket_name}.s3.amazonaws.com"

    def store(self, data: bytes, object_path: str, content_type: str) -> str:
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=object_path,
                Body=data,
                ContentType=content_type,
                CacheControl="max-age=31536000",
            )
        except botocore.exceptions.ClientError as error:
            status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            raise RemoteError(
                f"Failed to upload s3://{self.bucket_name}/{object_path}: {error}",
                status,
            ) from error
        self.logger.debug(f"Uploaded s3://{self.bucket_name}/{object_path}")
        return f"{self.public_url_base}/{object_path}"


def asset_store_from_config() -> AbstractAssetStore:
    """
    Build the asset store named by the [Assets] section
    """
    config = SeedConfig()
    backend = config.get("Assets", "backend", "local").lower()
    if backend == "s3":
        return S3AssetStore(
            config.get("Assets", "bucket", "mtg-cards"),
            endpoint_url=config.get("Assets", "endpoint_url") or None,
            public_url_base=config.get("Assets", "public_url_base") or None,
        )
    local_path = config.get("Assets", "local_path")
    return LocalAssetStore(
        pathlib.Path(local_path).expanduser()
        if local_path
        else constants.DATA_PATH.joinpath("images")
    )


async def download_bytes(session: aiohttp.ClientSession, url: str) -> bytes:
    """
    Download a URL, translating 404 and 429 into their dedicated errors
    :param session: Open client session
    :param url: What to download
    :return: Response body
    """
    async with session.get(url) as response:
        if response.status == 404:
            raise NotFoundError(f"{url} not found")
        if response.status == 429:
            raise RateLimitedError(f"Rate limited downloading {url}")
        response.raise_for_status()
        return await response.read()


class AssetPipeline:
    """
    Fetch, encode, and store card images through the retry controller.

    Use as an async context manager so the HTTP session is opened and closed
    with the run.
    """

    def __init__(
        self,
        store: AbstractAssetStore,
        retry: RetryController,
        codec: Optional[AssetCodec] = None,
        delay: float = 0.0,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        self.store = store
        self.retry = retry
        self.codec: AssetCodec = codec or PassthroughCodec()
        self.delay = delay
        self._sleep = sleep or asyncio.sleep
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "AssetPipeline":
        self._session = aiohttp.ClientSession(
            headers={"User-Agent": "tcgseed/1.0", "Accept": "image/*"},
            timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT),
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def fetch(self, url: str) -> Optional[bytes]:
        """
        Download an image
        :return: Raw bytes, or None when the image does not exist
        """
        if self._session is None:
            raise RuntimeError("AssetPipeline not opened. Use async context manager.")
        session = self._session
        return await self.retry.call(
            lambda: download_bytes(session, url), f"download {url}"
        )

    async def process(self, image_url: str, object_path: str) -> Optional[str]:
        """
        Download, encode, and store one image
        :param image_url: Source image
        :param object_path: Destination inside the asset store
        :return: Stored URL, or None if any step failed
        """
        try:
            raw = await self.fetch(image_url)
            if raw is None:
                LOGGER.warning(f"Image not found: {image_url}")
                return None

            encoded = await asyncio.to_thread(self.codec.encode, raw)
            return await self.retry.call(
                lambda: asyncio.to_thread(
                    self.store.store, encoded, object_path, self.codec.content_type
                ),
                f"upload {object_path}",
            )
        except Exception as error:
            LOGGER.warning(f"Image skipped for {object_path}: {error}")
            return None
        finally:
            if self.delay:
                await self._sleep(self.delay)
