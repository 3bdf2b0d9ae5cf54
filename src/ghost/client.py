"""Thin REST client for the Ghost Admin API.

Covers the two calls the publisher needs: image upload and post creation.
Uses urllib.request so the only runtime requirement is the standard library.
"""

from __future__ import annotations

import base64
import contextlib
import hashlib
import hmac
import json
import logging
import mimetypes
import time
import urllib.request
import uuid
from pathlib import Path
from urllib.error import HTTPError, URLError

from ghostdraft.ghost.config import GhostConfig

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 5 * 60


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def make_admin_token(admin_api_key: str, *, now: int | None = None) -> str:
    """Sign a short-lived Admin API token from an ``id:secret`` key.

    Ghost expects an HS256 JWT whose ``kid`` header is the key id, signed
    with the hex-decoded secret and scoped to the ``/admin/`` audience.
    """
    try:
        key_id, secret = admin_api_key.split(":", 1)
        secret_bytes = bytes.fromhex(secret)
    except ValueError as exc:
        raise ValueError("Ghost admin API key must look like '<id>:<hex secret>'") from exc

    issued = int(time.time()) if now is None else now
    header = {"alg": "HS256", "typ": "JWT", "kid": key_id}
    payload = {"iat": issued, "exp": issued + TOKEN_TTL_SECONDS, "aud": "/admin/"}

    signing_input = ".".join(
        _b64url(json.dumps(part, separators=(",", ":")).encode("utf-8"))
        for part in (header, payload)
    )
    signature = hmac.new(secret_bytes, signing_input.encode("ascii"), hashlib.sha256).digest()
    return f"{signing_input}.{_b64url(signature)}"


def _multipart_body(
    fields: dict[str, str], file_field: str, file_path: Path
) -> tuple[bytes, str]:
    """Encode *fields* plus one file as ``multipart/form-data``."""
    boundary = f"----ghostdraft{uuid.uuid4().hex}"
    content_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"

    chunks: list[bytes] = []
    for name, value in fields.items():
        chunks.append(
            (
                f"--{boundary}\r\n"
                f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
                f"{value}\r\n"
            ).encode("utf-8")
        )
    chunks.append(
        (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="{file_field}"; '
            f'filename="{file_path.name}"\r\n'
            f"Content-Type: {content_type}\r\n\r\n"
        ).encode("utf-8")
    )
    chunks.append(file_path.read_bytes())
    chunks.append(f"\r\n--{boundary}--\r\n".encode("utf-8"))
    return b"".join(chunks), f"multipart/form-data; boundary={boundary}"


class GhostAPIClient:
    """Minimal Ghost Admin API client.

    Auth: ``Authorization: Ghost <token>`` where the token is re-signed for
    every request from the configured admin key.
    """

    def __init__(self, config: GhostConfig | None = None) -> None:
        self._config = config or GhostConfig.from_env()
        if not self._config.is_configured:
            raise ValueError(
                "Ghost not configured (set GHOST_URL and GHOST_ADMIN_API_KEY)"
            )
        try:
            make_admin_token(self._config.admin_api_key)
        except ValueError as exc:
            raise GhostAPIError(message=str(exc)) from exc
        self._base_url = self._config.admin_url

    def upload_image(self, path: Path | str) -> dict[str, object]:
        """Upload a local image file.

        POST /images/upload/

        Returns:
            The image record, containing at least ``url``.

        Raises:
            GhostAPIError: On HTTP or connection errors.
            OSError: If the file cannot be read.
        """
        file_path = Path(path)
        body, content_type = _multipart_body(
            {"purpose": "image", "ref": str(path)}, "file", file_path
        )
        data = self._request("POST", "/images/upload/", data=body, content_type=content_type)
        images = data.get("images") or []
        if not images or not images[0].get("url"):
            raise GhostAPIError(message="Ghost image upload returned no URL", body=json.dumps(data))
        return images[0]

    def create_post(
        self, fields: dict[str, object], *, source: str = "html"
    ) -> dict[str, object]:
        """Create a post.

        POST /posts/?source=html

        Args:
            fields: Post fields (title, html, status, tags, feature_image...).
            source: Content source; ``html`` makes Ghost convert the HTML
                into its own document format.

        Returns:
            The created post record, containing ``id`` and ``url``.
        """
        body = json.dumps({"posts": [fields]}).encode("utf-8")
        path = f"/posts/?source={source}" if source else "/posts/"
        data = self._request("POST", path, data=body, content_type="application/json")
        posts = data.get("posts") or []
        if not posts:
            raise GhostAPIError(message="Ghost post creation returned no post", body=json.dumps(data))
        return posts[0]

    def _request(
        self,
        method: str,
        path: str,
        *,
        data: bytes | None = None,
        content_type: str | None = None,
    ) -> dict[str, object]:
        """Make an authenticated request to the Admin API.

        Raises:
            GhostAPIError: On HTTP or connection errors, or when the
                response body is not a JSON object.
        """
        url = f"{self._base_url}{path}"
        headers = {
            "Authorization": f"Ghost {make_admin_token(self._config.admin_api_key)}",
            "Accept-Version": self._config.api_version,
            "Accept": "application/json",
        }
        if content_type:
            headers["Content-Type"] = content_type

        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        logger.debug("%s %s", method, url)

        resp_data = ""
        try:
            with urllib.request.urlopen(req, timeout=self._config.timeout) as resp:
                resp_data = resp.read().decode("utf-8")
                payload = json.loads(resp_data) if resp_data else {}
        except HTTPError as exc:
            resp_body = ""
            with contextlib.suppress(Exception):
                resp_body = exc.read().decode("utf-8")
            raise GhostAPIError(
                status=exc.code,
                message=f"Ghost API error: {exc.code} {exc.reason}",
                body=resp_body,
            ) from exc
        except URLError as exc:
            raise GhostAPIError(
                status=0,
                message=f"Ghost connection error: {exc.reason}",
            ) from exc
        except ValueError as exc:
            raise GhostAPIError(
                message=f"Ghost returned a non-JSON response for {method} {path}",
                body=resp_data[:500],
            ) from exc

        if not isinstance(payload, dict):
            raise GhostAPIError(
                message=f"Ghost returned an unexpected response for {method} {path}",
                body=resp_data[:500],
            )
        return payload


class GhostAPIError(Exception):
    """Error from the Ghost Admin API."""

    def __init__(
        self,
        status: int = 0,
        message: str = "",
        body: str = "",
    ) -> None:
        self.status = status
        self.body = body
        super().__init__(message)
