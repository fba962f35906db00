"""
HTML Fetcher with CloudScraper
Single-attempt page fetch with browser-like headers and bounded redirects
"""

import random
import logging
from typing import Dict, Any

import cloudscraper
import requests
from requests.adapters import HTTPAdapter

from .exceptions import FetchError

logger = logging.getLogger(__name__)


class HTMLFetcher:
    """Fetches HTML content through a cloudscraper session"""

    # Realistic desktop user agents
    USER_AGENTS = [
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36',
        'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36',
        'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Safari/605.1.15',
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0'
    ]

    def __init__(self, timeout: int = 15, max_redirects: int = 5):
        """
        Initialize HTML Fetcher

        Args:
            timeout: Request timeout in seconds
            max_redirects: Redirects followed before giving up
        """
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.session = None
        self._create_session()

    def _create_session(self) -> None:
        """Create CloudScraper session with browser headers"""
        self.session = cloudscraper.create_scraper(
            browser={
                'browser': 'chrome',
                'platform': 'windows',
                'mobile': False
            }
        )

        selected_ua = random.choice(self.USER_AGENTS)
        self.session.headers.update({
            'User-Agent': selected_ua,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
            'Accept-Encoding': 'gzip, deflate',
            'Connection': 'keep-alive',
        })
        self.session.max_redirects = self.max_redirects

        # Exactly one attempt per fetch
        adapter = HTTPAdapter(max_retries=0)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        logger.debug(f" Using user agent: {selected_ua[:60]}...")

    def fetch(self, url: str) -> Dict[str, Any]:
        """
        Fetch HTML content from URL

        Args:
            url: Target URL to fetch

        Returns:
            Dict with 'html', 'url', 'status_code', 'headers' keys

        Raises:
            FetchError: network failure, timeout, too many redirects or non-2xx status
        """
        logger.info(f" Fetching: {url[:80]}..." if len(url) > 80 else f" Fetching: {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f" Fetch failed: {str(e)[:100]}")
            raise FetchError(f"Failed to fetch page: {e}", url=url) from e
        except Exception as e:
            # cloudscraper raises its own errors for unsolvable challenges
            logger.error(f" Fetch failed: {str(e)[:100]}")
            raise FetchError(f"Failed to fetch page: {e}", url=url) from e

        if not 200 <= response.status_code < 300:
            logger.warning(f" Response: {response.status_code}")
            raise FetchError(
                f"HTTP {response.status_code}: {response.reason or 'request failed'}",
                url=url,
                status_code=response.status_code
            )

        logger.info(f" Success: {response.status_code} ({len(response.text)} bytes)")
        return {
            'html': response.text,
            'url': response.url,
            'status_code': response.status_code,
            'headers': dict(response.headers)
        }

    def close(self) -> None:
        """Close the session"""
        if self.session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
