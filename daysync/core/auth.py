"""HTTP Basic authentication for the WebDAV server."""

import base64
from urllib.parse import quote


class WebDAVAuth:
    """Builds authenticated request headers and URLs for a WebDAV folder."""

    def __init__(
        self,
        username: str,
        password: str,
        base_url: str,
    ) -> None:
        """Initialize authentication with credentials.

        Args:
            username: WebDAV account name
            password: WebDAV password (plaintext, from the keyring)
            base_url: URL of the folder holding the diary files
        """
        if not base_url:
            raise ValueError("Missing WebDAV URL.")

        self.username = username
        self.password = password
        self.base_url = base_url.rstrip("/")

    def _basic_token(self) -> str:
        """Encode ``username:password`` for the Authorization header."""
        raw = f"{self.username}:{self.password}".encode("utf-8")
        return base64.b64encode(raw).decode("ascii")

    def get_headers(
        self,
        content_type: str | None = None,
        depth: str | None = None,
    ) -> dict[str, str]:
        """Generate headers for a WebDAV request.

        Args:
            content_type: Optional Content-Type header value
            depth: Optional Depth header for PROPFIND ("0" or "1")

        Returns:
            Dictionary of headers including Authorization
        """
        headers = {"Authorization": f"Basic {self._basic_token()}"}
        if content_type:
            headers["Content-Type"] = content_type
        if depth is not None:
            headers["Depth"] = depth
        return headers

    def get_full_url(self, name: str = "") -> str:
        """Build the URL of a file in the folder, or of the folder itself."""
        if not name:
            return self.base_url + "/"
        return f"{self.base_url}/{quote(name)}"

    def verify_credentials(self) -> bool:
        """Check that a username and password are set (no network access)."""
        return bool(self.username and self.password and self.base_url)
