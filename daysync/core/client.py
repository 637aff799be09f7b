"""HTTP client wrapper for a WebDAV folder."""

import re
from typing import Any
from urllib.parse import unquote, urlparse

import requests

from .auth import WebDAVAuth

# Matches <href>, <d:href>, <D:href> ... in a multistatus body
HREF_PATTERN = re.compile(r"<(?:[\w-]+:)?href>(.*?)</(?:[\w-]+:)?href>", re.IGNORECASE | re.DOTALL)


class WebDAVError(Exception):
    """Exception raised for WebDAV request failures."""

    def __init__(self, message: str, status_code: int | None = None, response: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class WebDAVClient:
    """HTTP client for the WebDAV subset used by diary sync."""

    def __init__(self, auth: WebDAVAuth, timeout: float = 30) -> None:
        """Initialize client with authentication.

        Args:
            auth: WebDAVAuth for the configured folder
            timeout: Per-request timeout in seconds
        """
        self.auth = auth
        self.timeout = timeout
        self.session = requests.Session()

    def _request(
        self,
        method: str,
        name: str = "",
        data: bytes | None = None,
        content_type: str | None = None,
        depth: str | None = None,
        allowed: tuple[int, ...] = (),
    ) -> requests.Response:
        """Make an authenticated request against the folder.

        Args:
            method: HTTP method
            name: File name inside the folder ("" for the folder itself)
            data: Optional request body
            content_type: Optional Content-Type header
            depth: Optional Depth header
            allowed: Extra non-2xx status codes treated as success

        Returns:
            The response

        Raises:
            WebDAVError: On transport errors and non-success responses
        """
        url = self.auth.get_full_url(name)
        headers = self.auth.get_headers(content_type=content_type, depth=depth)

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=headers,
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise WebDAVError(f"Request failed: {e}") from e

        if not (200 <= response.status_code < 300 or response.status_code in allowed):
            target = name or "folder"
            raise WebDAVError(
                f"{method} {target} failed: {response.status_code}",
                response.status_code,
                response,
            )

        return response

    # -------------------------------------------------------------------------
    # File Operations
    # -------------------------------------------------------------------------

    def list_files(self, extension: str = ".md", suffix: str | None = None) -> set[str]:
        """List entry files in the folder.

        Args:
            extension: Plain entry extension to keep
            suffix: Encrypted-copy suffix; when given, ``<extension><suffix>``
                names are kept as well

        Returns:
            Set of raw (URL-decoded) remote file names
        """
        response = self._request("PROPFIND", depth="1")
        names: set[str] = set()

        for href in HREF_PATTERN.findall(response.text):
            path = urlparse(href.strip()).path.rstrip("/")
            name = unquote(path.rsplit("/", 1)[-1])
            if not name:
                continue
            if name.endswith(extension) or (suffix and name.endswith(extension + suffix)):
                names.add(name)

        return names

    def upload(self, name: str, data: bytes, content_type: str = "text/markdown") -> None:
        """Create or replace a file with PUT."""
        self._request("PUT", name, data=data, content_type=content_type)

    def download(self, name: str) -> bytes:
        """Fetch a file's content with GET."""
        return self._request("GET", name).content

    def delete(self, name: str) -> None:
        """Delete a file; a file that is already gone counts as deleted."""
        self._request("DELETE", name, allowed=(404,))

    # -------------------------------------------------------------------------
    # Health Check
    # -------------------------------------------------------------------------

    def verify_connection(self) -> bool:
        """Probe the folder with a Depth 0 PROPFIND.

        Returns:
            True for any success-family response (including 207 Multi-Status),
            False for any other HTTP status

        Raises:
            WebDAVError: When the server cannot be reached at all
        """
        try:
            self._request("PROPFIND", depth="0")
        except WebDAVError as e:
            if e.status_code is None:
                raise
            return False
        return True
