"""
Keyed cache of session detail payloads with request de-duplication.

Entries are indexed by (provider, session_id, mode). Each entry moves
through absent -> pending -> ready | error. Fetches run on a thread pool;
concurrent requests for the same key coalesce into one fetch while it is
pending. Every fetch carries a CancelToken, and a result is only committed
when its token is still the one recorded on the entry and has not been
cancelled. Cancelling a pending fetch restores the entry that existed
before the request. close() cancels every pending fetch.

Thread-safe: one lock guards the key -> entry map and entries are
immutable, so readers always see a fully committed state.
"""

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, NamedTuple, Optional, Set, Union

from .logging_config import get_logger
from .models import DetailMode, SessionDetailResponse, SessionSummary

logger = get_logger("detail_cache")


STATUS_ABSENT = "absent"
STATUS_PENDING = "pending"
STATUS_ERROR = "error"
STATUS_READY = "ready"

# Outcomes of ensure_user_only()
SOURCE_PREVIEW = "preview"   # summary preview is complete, nothing to fetch
SOURCE_FULL = "full"         # an already-loaded full transcript covers it
SOURCE_FETCH = "fetch"       # a dedicated user_only fetch was requested

Fetcher = Callable[[str, str, DetailMode], SessionDetailResponse]
Listener = Callable[["DetailKey"], None]


class DetailKey(NamedTuple):
    provider: str
    session_id: str
    mode: DetailMode

    @classmethod
    def of(cls, provider: str, session_id: str, mode: Union[DetailMode, str]) -> "DetailKey":
        return cls(provider, session_id, DetailMode(mode))


class CancelToken:
    """One-shot cancellation flag for a single fetch."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def on_cancel(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()


class FetchScope:
    """Groups the tokens of one UI lifecycle (e.g. the inspected session).

    cancel() fires every outstanding token; tokens requested afterwards
    are born cancelled.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._tokens: List[CancelToken] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def new_token(self) -> CancelToken:
        token = CancelToken()
        with self._lock:
            if not self._closed:
                self._tokens.append(token)
                return token
        token.cancel()
        return token

    def cancel(self) -> int:
        """Cancel all outstanding tokens. Returns how many were live."""
        with self._lock:
            self._closed = True
            tokens, self._tokens = self._tokens, []
        live = [t for t in tokens if not t.cancelled]
        for token in live:
            token.cancel()
        return len(live)


@dataclass(frozen=True)
class DetailEntry:
    """Committed state of one cache key."""

    status: str = STATUS_ABSENT
    response: Optional[SessionDetailResponse] = None
    error: Optional[str] = None
    token: Optional[CancelToken] = field(default=None, compare=False, repr=False)
    # State before the pending request, restored if it is cancelled
    previous: Optional["DetailEntry"] = field(default=None, compare=False, repr=False)


ABSENT = DetailEntry()


def error_message(exc: BaseException) -> str:
    message = str(exc).strip()
    return message or type(exc).__name__


class DetailCache:
    """Session detail cache keyed by (provider, session_id, mode)."""

    def __init__(
        self,
        fetcher: Fetcher,
        executor: Optional[Executor] = None,
        max_workers: int = 4,
    ) -> None:
        self._fetcher = fetcher
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="agentdash-detail",
        )
        self._lock = threading.Lock()
        self._entries: Dict[DetailKey, DetailEntry] = {}
        self._futures: Dict[DetailKey, Future] = {}
        # Tokens whose caller Future was handed to a forced replacement fetch
        self._handed_over: Set[CancelToken] = set()
        self._listeners: List[Listener] = []

    # ── Lifecycle ─────────────────────────────────────────────────────

    def close(self) -> None:
        """Stop issuing fetches and cancel every pending one.

        Pending entries revert to their previous state and every Future
        handed out resolves to None, including fetches the executor drops.
        """
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        with self._lock:
            tokens = [
                e.token for e in self._entries.values()
                if e.status == STATUS_PENDING and e.token is not None
            ]
        for token in tokens:
            token.cancel()
        if tokens:
            logger.debug(f"Closed detail cache with {len(tokens)} pending fetches")

    def __enter__(self) -> "DetailCache":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback fired after every committed state change."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # ── Requests ──────────────────────────────────────────────────────

    def request_detail(
        self,
        provider: str,
        session_id: str,
        mode: Union[DetailMode, str],
        forced: bool = False,
        scope: Optional[FetchScope] = None,
    ) -> Optional[Future]:
        """Fetch a session detail unless it is already pending or ready.

        Returns the Future of the fetch serving this key (an existing one
        when the request was coalesced), or None when the key is already
        ready and no fetch was issued. The Future resolves to the fetched
        payload, or None when the fetch failed or was cancelled. A forced
        request that replaces a pending fetch keeps its Future, so callers
        already waiting get the replacement's result.
        """
        key = DetailKey.of(provider, session_id, mode)
        superseded: Optional[CancelToken] = None

        with self._lock:
            entry = self._entries.get(key, ABSENT)
            if not forced and entry.status == STATUS_PENDING:
                logger.debug(f"Coalesced detail request for {key}")
                return self._futures.get(key)
            if not forced and entry.status == STATUS_READY:
                return None

            if entry.status == STATUS_PENDING:
                superseded = entry.token
                previous = entry.previous or ABSENT
            else:
                previous = entry

            token = scope.new_token() if scope is not None else CancelToken()
            future = self._futures.get(key) if superseded is not None else None
            if future is None:
                future = Future()
            else:
                self._handed_over.add(superseded)
            self._entries[key] = DetailEntry(
                status=STATUS_PENDING,
                response=previous.response if previous.status == STATUS_READY else None,
                token=token,
                previous=previous,
            )
            self._futures[key] = future

        if superseded is not None:
            superseded.cancel()
        token.on_cancel(lambda: self._revert(key, token))
        if token.cancelled:
            self._settle(key, token, future, None)
            return None

        self._notify(key)
        logger.debug(f"Fetching detail {key} (forced={forced})")
        task = self._executor.submit(self._run, key, token, future)
        task.add_done_callback(lambda t: self._on_task_done(key, token, future, t))
        return future

    def cancel(self, provider: str, session_id: str, mode: Union[DetailMode, str]) -> bool:
        """Cancel the pending fetch for a key. Returns False if none was pending."""
        key = DetailKey.of(provider, session_id, mode)
        with self._lock:
            entry = self._entries.get(key, ABSENT)
            token = entry.token if entry.status == STATUS_PENDING else None
        if token is None:
            return False
        token.cancel()
        return True

    def _run(self, key: DetailKey, token: CancelToken, future: Future) -> None:
        response: Optional[SessionDetailResponse] = None
        try:
            if token.cancelled:
                logger.debug(f"Skipped cancelled detail fetch for {key}")
                return
            try:
                response = self._fetcher(key.provider, key.session_id, key.mode)
            except Exception as e:
                message = error_message(e)
                if self._commit(key, token, DetailEntry(status=STATUS_ERROR, error=message)):
                    logger.warning(
                        f"Detail fetch failed for {key.provider}/{key.session_id} ({key.mode}): {message}"
                    )
                return
            if not self._commit(key, token, DetailEntry(status=STATUS_READY, response=response)):
                response = None
        finally:
            self._settle(key, token, future, response)

    def _on_task_done(self, key: DetailKey, token: CancelToken, future: Future, task: Future) -> None:
        if task.cancelled():
            # Dropped by executor shutdown before _run started
            token.cancel()
            self._settle(key, token, future, None)

    def _settle(
        self,
        key: DetailKey,
        token: CancelToken,
        future: Future,
        response: Optional[SessionDetailResponse],
    ) -> None:
        with self._lock:
            handed_over = token in self._handed_over
            self._handed_over.discard(token)
            if not handed_over and self._futures.get(key) is future:
                del self._futures[key]
        if not handed_over:
            future.set_result(response)

    def _commit(self, key: DetailKey, token: CancelToken, entry: DetailEntry) -> bool:
        with self._lock:
            current = self._entries.get(key)
            if token.cancelled or current is None or current.token is not token:
                logger.debug(f"Discarded stale detail result for {key}")
                return False
            self._entries[key] = entry
            self._futures.pop(key, None)
        self._notify(key)
        return True

    def _revert(self, key: DetailKey, token: CancelToken) -> None:
        with self._lock:
            current = self._entries.get(key)
            if current is None or current.token is not token:
                return
            previous = current.previous or ABSENT
            if previous.status == STATUS_ABSENT:
                del self._entries[key]
            else:
                self._entries[key] = previous
            self._futures.pop(key, None)
        logger.debug(f"Cancelled detail fetch for {key}")
        self._notify(key)

    def _notify(self, key: DetailKey) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(key)
            except Exception:
                logger.exception(f"Detail cache listener failed for {key}")

    # ── Accessors ─────────────────────────────────────────────────────

    def entry(self, provider: str, session_id: str, mode: Union[DetailMode, str]) -> DetailEntry:
        key = DetailKey.of(provider, session_id, mode)
        with self._lock:
            return self._entries.get(key, ABSENT)

    def status(self, provider: str, session_id: str, mode: Union[DetailMode, str]) -> str:
        return self.entry(provider, session_id, mode).status

    def get_detail(
        self, provider: str, session_id: str, mode: Union[DetailMode, str]
    ) -> Optional[SessionDetailResponse]:
        """Last successfully fetched payload (kept visible during a forced refetch)."""
        return self.entry(provider, session_id, mode).response

    def get_error(self, provider: str, session_id: str, mode: Union[DetailMode, str]) -> Optional[str]:
        entry = self.entry(provider, session_id, mode)
        return entry.error if entry.status == STATUS_ERROR else None

    def is_fetching(self, provider: str, session_id: str, mode: Union[DetailMode, str]) -> bool:
        return self.entry(provider, session_id, mode).status == STATUS_PENDING

    def keys(self) -> List[DetailKey]:
        with self._lock:
            return list(self._entries)

    # ── Mode fallback ─────────────────────────────────────────────────

    def ensure_user_only(
        self,
        session: SessionSummary,
        forced: bool = False,
        scope: Optional[FetchScope] = None,
    ) -> str:
        """Decide where the user-only transcript of a session comes from.

        An untruncated preview is authoritative. Otherwise a ready full
        transcript is reused before a dedicated user_only fetch is issued.
        """
        if not forced and not session.preview_truncated:
            return SOURCE_PREVIEW
        full = self.entry(session.provider, session.session_id, DetailMode.FULL)
        if not forced and full.status == STATUS_READY:
            return SOURCE_FULL
        self.request_detail(
            session.provider, session.session_id, DetailMode.USER_ONLY, forced=forced, scope=scope
        )
        return SOURCE_FETCH

    def ensure_detail(
        self,
        session: SessionSummary,
        mode: Union[DetailMode, str],
        forced: bool = False,
        scope: Optional[FetchScope] = None,
    ) -> Optional[Future]:
        """Request whatever the given mode needs for a session.

        Returns the Future of an issued or coalesced fetch, else None.
        """
        mode = DetailMode(mode)
        if mode is DetailMode.USER_ONLY:
            if self.ensure_user_only(session, forced=forced, scope=scope) != SOURCE_FETCH:
                return None
            with self._lock:
                return self._futures.get(DetailKey(session.provider, session.session_id, mode))
        return self.request_detail(session.provider, session.session_id, mode, forced=forced, scope=scope)

    def user_only_detail(self, session: SessionSummary) -> Optional[SessionDetailResponse]:
        """Best loaded payload for the user-only view: user_only, then full."""
        for mode in (DetailMode.USER_ONLY, DetailMode.FULL):
            entry = self.entry(session.provider, session.session_id, mode)
            if entry.status == STATUS_READY:
                return entry.response
        return None
