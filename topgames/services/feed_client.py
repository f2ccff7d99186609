"""HTTP client for the iOS and Android top-games feeds."""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional

import requests

from ..database import PLATFORM_ANDROID, PLATFORM_IOS, PLATFORMS
from ..errors import FeedImportError

_DEFAULT_TIMEOUT = 30  # seconds


class FeedClient:
    """Downloads the two static top-100 JSON feeds.

    Both feeds are fetched in parallel by :meth:`fetch_all`; a failure of
    either one aborts the whole fetch with
    :class:`~topgames.errors.FeedImportError`.
    """

    def __init__(self, ios_url: str, android_url: str,
                 timeout: float = _DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None) -> None:
        """
        Args:
            ios_url:     URL of the iOS top-100 feed.
            android_url: URL of the Android top-100 feed.
            timeout:     Per-request timeout in seconds.
            session:     Optional pre-configured ``requests.Session``.
        """
        self.urls = {PLATFORM_IOS: ios_url, PLATFORM_ANDROID: android_url}
        self.timeout = timeout
        self.session = session or requests.Session()
        self._log = logging.getLogger('topgames.feeds')

    @classmethod
    def from_settings(cls, settings) -> 'FeedClient':
        return cls(settings.ios_feed_url, settings.android_feed_url,
                   timeout=settings.feed_timeout)

    def fetch(self, platform: str) -> Any:
        """Return the decoded JSON body of the feed for *platform*.

        Raises:
            FeedImportError: Network error, timeout, non-2xx status or a body
                that is not valid JSON.
        """
        url = self.urls[platform]
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            self._log.error("Error fetching %s feed from %s: %s", platform, url, exc)
            raise FeedImportError(platform, url, exc) from exc
        self._log.debug("Fetched %s feed from %s", platform, url)
        return body

    def fetch_all(self) -> Dict[str, Any]:
        """Fetch every platform feed concurrently.

        Returns:
            ``{platform: decoded_body}`` for ``'ios'`` and ``'android'``.
            Both requests have finished by the time this returns or raises.
        """
        with ThreadPoolExecutor(max_workers=len(PLATFORMS),
                                thread_name_prefix='topgames_feed') as executor:
            futures = {platform: executor.submit(self.fetch, platform)
                       for platform in PLATFORMS}
            return {platform: future.result() for platform, future in futures.items()}
