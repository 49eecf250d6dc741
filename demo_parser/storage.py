import logging
import time

import requests

from demo_parser.config import DEFAULT_BUCKET, DEFAULT_DOWNLOAD_TIMEOUT, ParserConfig
from demo_parser.errors import DemoDownloadError

CHUNK_SIZE = 1024 * 1024

logger = logging.getLogger(__name__)


class StorageClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        bucket: str = DEFAULT_BUCKET,
        timeout: int = DEFAULT_DOWNLOAD_TIMEOUT,
        session: requests.Session | None = None,
    ):
        if not base_url:
            raise DemoDownloadError("SUPABASE_URL is not set")
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    @classmethod
    def from_config(cls, config: ParserConfig) -> "StorageClient":
        return cls(
            config.storage_url,
            config.storage_key,
            bucket=config.storage_bucket,
            timeout=config.download_timeout,
        )

    def object_url(self, file_path: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{file_path.lstrip('/')}"

    def download(self, file_path: str) -> bytes:
        """Fetch one object; ``timeout`` bounds the whole transfer, not each read."""
        url = self.object_url(file_path)
        deadline = time.monotonic() + self.timeout
        chunks: list[bytes] = []
        try:
            r = self.session.get(url, stream=True, timeout=self.timeout)
            try:
                if r.status_code != 200:
                    raise DemoDownloadError(f"failed to download demo: status {r.status_code}")
                for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                    if time.monotonic() > deadline:
                        raise DemoDownloadError(f"failed to download demo: exceeded {self.timeout}s")
                    if chunk:
                        chunks.append(chunk)
            finally:
                r.close()
        except requests.RequestException as exc:
            raise DemoDownloadError(f"failed to download demo: {exc}") from exc
        data = b"".join(chunks)
        logger.info("Downloaded demo %s (%s bytes)", file_path, len(data))
        return data
