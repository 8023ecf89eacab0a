"""
HTTP client for the dashboard backend.

Thin urllib wrapper: one GET helper that maps non-2xx responses and
transport failures to ApiError, plus typed accessors for the endpoints the
aggregation layer consumes. No retries; the socket timeout is the only
timeout policy.
"""

import json
import re
import socket
from typing import Any, Dict, List, Optional, Union
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from .logging_config import get_structured_logger
from .models import (
    DetailMode,
    GitDetails,
    SessionDetailResponse,
    SessionListResponse,
    WorktreeSummary,
)

logger = get_structured_logger("api")

DEFAULT_TIMEOUT = 10.0
_ABSOLUTE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


class ApiError(Exception):
    """A failed backend request.

    status is the HTTP status code, or 0 when the request never got a
    response (connection refused, timeout, bad JSON).
    """

    def __init__(self, message: str, status: int = 0, body: Any = None, status_text: str = ""):
        super().__init__(message)
        self.message = message
        self.status = status
        self.status_text = status_text
        self.body = body


def normalize_base(base_url: Optional[str]) -> str:
    if not base_url:
        return ""
    return base_url.rstrip("/")


def api_url(base_url: Optional[str], path: str) -> str:
    """Join a path onto the API base; absolute URLs pass through."""
    base = normalize_base(base_url)
    if not base or _ABSOLUTE_URL_RE.match(path):
        return path
    if not path.startswith("/"):
        return f"{base}/{path}"
    return f"{base}{path}"


def _parse_body(raw: bytes, content_type: Optional[str]) -> Any:
    text = raw.decode("utf-8", errors="replace")
    if content_type and "application/json" in content_type.lower():
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
    return text if text else None


def error_from_response(status: int, status_text: str, body: Any) -> ApiError:
    message = f"Request failed with status {status}"
    if isinstance(body, dict):
        reason = body.get("message")
        if isinstance(reason, str):
            message = reason
    elif isinstance(body, str) and body.strip():
        message = body.strip()
    return ApiError(message, status=status, status_text=status_text, body=body)


class ApiClient:
    """Client for the dashboard backend API."""

    def __init__(
        self,
        base_url: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        api_key: str = "",
    ) -> None:
        self.base_url = normalize_base(base_url)
        self.timeout = timeout
        self.api_key = api_key

    def url(self, path: str) -> str:
        return api_url(self.base_url, path)

    def get_json(self, path: str) -> Any:
        url = self.url(path)
        req = Request(url, method="GET")
        req.add_header("Accept", "application/json")
        if self.api_key:
            req.add_header("X-API-Key", self.api_key)

        logger.debug("GET", url=url)
        try:
            with urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except HTTPError as e:
            body = _parse_body(e.read() or b"", e.headers.get("Content-Type") if e.headers else None)
            logger.debug("Request failed", url=url, status=e.code)
            raise error_from_response(e.code, str(e.reason or ""), body) from e
        except (URLError, socket.timeout, OSError) as e:
            reason = getattr(e, "reason", None) or e
            raise ApiError(f"Could not reach {url}: {reason}") from e

        try:
            return json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ApiError(f"Invalid JSON from {url}: {e}") from e

    # ── Endpoints ─────────────────────────────────────────────────────

    def list_sessions(self) -> SessionListResponse:
        return SessionListResponse.from_dict(self._expect_dict(self.get_json("/api/sessions")))

    def list_worktrees(self) -> List[WorktreeSummary]:
        data = self._expect_dict(self.get_json("/api/worktrees"))
        return [WorktreeSummary.from_dict(w) for w in data.get("worktrees") or []]

    def get_worktree_git(self, worktree_id: str) -> GitDetails:
        path = f"/api/worktrees/{quote(worktree_id, safe='')}/git"
        return GitDetails.from_dict(self._expect_dict(self.get_json(path)))

    def get_session_detail(
        self,
        provider: str,
        session_id: str,
        mode: Union[DetailMode, str] = DetailMode.FULL,
    ) -> SessionDetailResponse:
        mode = DetailMode(mode)
        path = (
            f"/api/sessions/{quote(provider, safe='')}/{quote(session_id, safe='')}"
            f"?mode={mode.value}"
        )
        return SessionDetailResponse.from_dict(self._expect_dict(self.get_json(path)), mode=mode)

    @staticmethod
    def _expect_dict(data: Any) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise ApiError("Unexpected response shape: expected a JSON object")
        return data
