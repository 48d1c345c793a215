"""
HTTP client for downloading origin MPDs with retries
"""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from steering.core.errors import SteeringError
from steering.utils.settings import get_settings

logger = logging.getLogger(__name__)


class OriginFetchError(SteeringError):
    """Failed to download MPD from origin"""
    status_code = 502


class OriginClient:
    """Fetches MPD documents from the remote origin"""

    def __init__(self, base_url: str, timeout: int = 10, max_retries: int = 3):
        self.base_url = base_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry strategy"""
        session = requests.Session()

        retry_strategy = Retry(
            total=self.max_retries,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
            backoff_factor=1
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def resolve(self, name: str) -> str:
        """Join the origin base URL and a file name"""
        return f"{self.base_url.rstrip('/')}/{name.lstrip('/')}"

    def download(self, url: str) -> bytes:
        """
        Download a document from the origin.

        Raises:
            OriginFetchError: on transport errors or a non-200 status
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"❌ Failed to download {url}: {e}")
            raise OriginFetchError(f"Failed to download {url}: {e}") from e

        if response.status_code != 200:
            logger.warning(f"⚠️ Origin returned HTTP {response.status_code} for {url}")
            raise OriginFetchError(f"Failed to download {url}: HTTP {response.status_code}")

        logger.debug(f"Downloaded {url} ({len(response.content)} bytes)")
        return response.content

    def fetch_mpd(self, name: str) -> bytes:
        return self.download(self.resolve(name))


_origin_client: Optional[OriginClient] = None


def get_origin_client() -> OriginClient:
    """Get the global origin client instance"""
    global _origin_client
    if _origin_client is None:
        settings = get_settings()
        _origin_client = OriginClient(
            settings.remote_base_url,
            timeout=settings.origin_timeout,
            max_retries=settings.origin_max_retries,
        )
    return _origin_client
