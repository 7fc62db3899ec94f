"""HTTP page retrieval with bounded bodies and redirect checks.

Pages are fetched with a plain GET. Redirects are followed by hand so that
every hop is validated, and the body is streamed so a huge response is cut off
at the configured size instead of being read into memory.
"""

import time
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import httpx

from robust_content_extractor.shared import FetchConfig, get_logger

_REDIRECT_STATUSES = {301, 302, 303, 307, 308}


class FetchError(Exception):
    """Raised when a page cannot be retrieved."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


@dataclass
class FetchedPage:
    """Raw page body together with response metadata.

    Attributes:
        url: Final URL after redirects
        status_code: HTTP status of the final response
        content: Body bytes, at most ``FetchConfig.max_bytes`` long
        encoding: Charset declared in the Content-Type header, if any
        content_type: Media type without parameters
        truncated: Whether the body was cut at the size limit
    """
    url: str
    status_code: int
    content: bytes
    encoding: Optional[str] = None
    content_type: str = ""
    truncated: bool = False
    elapsed_ms: float = 0.0


def _validate_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"}:
        raise FetchError("Only http and https URLs are supported", url=url)
    if not parsed.netloc:
        raise FetchError("URL host is required", url=url)
    return url


def _read_body_limited(response: httpx.Response, max_bytes: int) -> Tuple[bytes, bool]:
    chunks: List[bytes] = []
    total = 0
    for chunk in response.iter_bytes():
        if not chunk:
            continue
        remaining = max_bytes - total
        if len(chunk) > remaining:
            chunks.append(chunk[:remaining])
            return b"".join(chunks), True
        chunks.append(chunk)
        total += len(chunk)
    return b"".join(chunks), False


class PageFetcher:
    """Fetches HTML pages over HTTP(S).

    An ``httpx.Client`` may be injected, e.g. one built on a mock transport in
    tests; otherwise a short-lived client is created for each fetch.
    """

    def __init__(
        self,
        config: Optional[FetchConfig] = None,
        client: Optional[httpx.Client] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or FetchConfig()
        self._client = client
        self.logger = get_logger(__name__, correlation_id, "page_fetcher")

    def fetch(self, url: str) -> FetchedPage:
        """Retrieve ``url`` and return its body.

        Args:
            url: Absolute http or https URL

        Returns:
            FetchedPage for the final response

        Raises:
            FetchError: Invalid URL, transport failure, too many redirects or
                a non-success status
        """
        start_time = time.time()
        _validate_url(url.strip())

        self.logger.info("Fetching page", extra={"url": url})

        try:
            if self._client is not None:
                page = self._fetch_with_client(self._client, url.strip())
            else:
                with httpx.Client(
                    timeout=self.config.timeout_seconds,
                    follow_redirects=False,
                    verify=self.config.verify_tls,
                    headers={"User-Agent": self.config.user_agent},
                ) as client:
                    page = self._fetch_with_client(client, url.strip())
        except httpx.HTTPError as e:
            self.logger.warning(
                "Page fetch failed",
                extra={"url": url, "error": str(e), "exception_type": type(e).__name__}
            )
            raise FetchError(f"Request failed: {e}", url=url) from e

        page.elapsed_ms = (time.time() - start_time) * 1000
        self.logger.info(
            "Page fetched",
            extra={
                "url": page.url,
                "status_code": page.status_code,
                "bytes": len(page.content),
                "truncated": page.truncated,
                "elapsed_ms": page.elapsed_ms,
            }
        )
        return page

    def _fetch_with_client(self, client: httpx.Client, url: str) -> FetchedPage:
        current_url = url
        for _ in range(self.config.max_redirects + 1):
            _validate_url(current_url)
            with client.stream(
                "GET", current_url, timeout=self.config.timeout_seconds
            ) as response:
                if response.status_code in _REDIRECT_STATUSES:
                    location = response.headers.get("location")
                    if not location:
                        raise FetchError(
                            "Redirect response without Location header",
                            url=current_url,
                            status_code=response.status_code,
                        )
                    current_url = urljoin(str(response.request.url), location)
                    continue

                if not response.is_success:
                    raise FetchError(
                        f"Unexpected HTTP status {response.status_code}",
                        url=current_url,
                        status_code=response.status_code,
                    )

                content, truncated = _read_body_limited(
                    response, self.config.max_bytes
                )
                content_type = response.headers.get("content-type", "")
                return FetchedPage(
                    url=str(response.url),
                    status_code=response.status_code,
                    content=content,
                    encoding=response.charset_encoding,
                    content_type=content_type.split(";", 1)[0].strip().lower(),
                    truncated=truncated,
                )

        raise FetchError(
            f"Too many redirects (>{self.config.max_redirects})", url=url
        )
