"""
Synchronous HTTP client for the Lectra backend API.

Uses ``httpx.Client`` (sync); the cache and mutation layers built on top of
it are synchronous too.
"""

import logging
from pathlib import Path

import httpx

from lectra.core.audio import MAX_UPLOAD_BYTES, guess_mime_type

logger = logging.getLogger(__name__)


class APIError(Exception):
    """User-friendly API error with categorized message.

    Categories: "validation", "connection", "timeout", "http", "network",
    "unknown". ``status_code`` is set for "http" errors.
    """

    def __init__(
        self,
        message: str,
        category: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        self.message = message
        self.category = category
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_transient(self) -> bool:
        """True for failures worth retrying (network trouble or a 5xx)."""
        if self.category in ("connection", "timeout", "network"):
            return True
        return self.category == "http" and (self.status_code or 0) >= 500


class APIClient:
    """Thin synchronous wrapper around httpx for calling the FastAPI backend.

    All methods return parsed JSON dicts or raise ``APIError`` with
    user-friendly messages taken from the server's ``message`` field.
    """

    def __init__(self, base_url: str = "http://localhost:3000/api", timeout: float = 30.0) -> None:
        """Initialize the HTTP client.

        Args:
            base_url: Base URL of the Lectra API (including the ``/api`` prefix).
            timeout: Default request timeout in seconds.
        """
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self._base_url, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Execute an HTTP request with user-friendly error handling.

        Args:
            method: HTTP method name ("get", "post", "put", "delete").
            path: API endpoint path (e.g. "/transcription/history").
            **kwargs: Passed through to httpx (json, params, files, timeout, etc.).

        Returns:
            The httpx Response object with a successful status code.

        Raises:
            APIError: On connection, timeout, HTTP status, or network errors.
        """
        try:
            resp = getattr(self._client, method)(path, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.ConnectError:
            raise APIError(
                "Backend server is not running. Start it with: `python -m lectra`",
                category="connection",
            ) from None
        except httpx.TimeoutException:
            raise APIError(
                "Request timed out. The server may be overloaded.",
                category="timeout",
            ) from None
        except httpx.HTTPStatusError as exc:
            try:
                message = exc.response.json().get("message", exc.response.text)
            except Exception:
                message = exc.response.text or str(exc)
            raise APIError(
                str(message), category="http", status_code=exc.response.status_code
            ) from None
        except httpx.HTTPError as exc:
            raise APIError(f"Network error: {exc}", category="network") from None

    # -- health --

    def health_check(self) -> dict:
        return self._request("get", "/transcription/health").json()

    def check_connection(self) -> tuple[bool, str]:
        """Check if the backend is reachable. Returns (ok, message)."""
        try:
            self.health_check()
            return True, "Connected"
        except APIError as exc:
            return False, exc.message

    def list_languages(self) -> list[dict]:
        return self._request("get", "/transcription/languages").json()["data"]

    # -- transcribe --

    def transcribe_audio(self, audio_path: str | Path, language_code: str | None = None) -> dict:
        """Upload a local audio file for transcription.

        The size check mirrors the server's limit exactly, so a file that
        passes here is never rejected for size after upload.

        Raises:
            APIError: ``validation`` if the file is missing or too large,
                otherwise as for any request.
        """
        path = Path(audio_path)
        if not path.is_file():
            raise APIError("Audio file does not exist", category="validation")

        size = path.stat().st_size
        logger.debug("Uploading audio file %s (%d bytes)", path, size)
        if size > MAX_UPLOAD_BYTES:
            raise APIError(
                f"File too large ({size / 1024 / 1024:.2f}MB). "
                f"Maximum size is {MAX_UPLOAD_BYTES // (1024 * 1024)}MB.",
                category="validation",
            )

        data = {"language_code": language_code} if language_code else None
        with path.open("rb") as fh:
            files = {"audio": (path.name, fh, guess_mime_type(path.name))}
            body = self._request(
                "post", "/transcription/transcribe", files=files, data=data, timeout=120.0
            ).json()

        if body.get("status") != "success":
            raise APIError(body.get("message") or "Transcription failed", category="http")
        return body

    # -- history --

    def get_history(self, limit: int = 20, offset: int = 0) -> dict:
        params = {"limit": limit, "offset": offset}
        return self._request("get", "/transcription/history", params=params).json()

    def search(self, query: str, limit: int = 20, offset: int = 0) -> dict:
        params = {"q": query, "limit": limit, "offset": offset}
        return self._request("get", "/transcription/search", params=params).json()

    # -- single transcription --

    def get_transcription(self, transcription_id: str) -> dict:
        return self._request("get", f"/transcription/{transcription_id}").json()

    def update_transcription(
        self,
        transcription_id: str,
        transcription_text: str | None = None,
        language_code: str | None = None,
        status: str | None = None,
    ) -> dict:
        """Send only the fields that are not None."""
        body: dict = {}
        if transcription_text is not None:
            body["transcription_text"] = transcription_text
        if language_code is not None:
            body["language_code"] = language_code
        if status is not None:
            body["status"] = status
        return self._request("put", f"/transcription/{transcription_id}", json=body).json()

    def delete_transcription(self, transcription_id: str) -> dict:
        return self._request("delete", f"/transcription/{transcription_id}").json()

    def export_text(self, transcription_id: str) -> str:
        """Return the plain-text export of a transcription."""
        return self._request("get", f"/transcription/{transcription_id}/export").text
