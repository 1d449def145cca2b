# Rev 0.1.0

"""Synchronization layer (Rev 0.1.0)
Runs remote persistence calls off the caller's thread so local reads/writes
never wait on the backend.

- One worker thread: remote calls land in the order they were issued.
- A job is a list of (method, argument) steps run against the remote in
  order; the first failing step stops the job.
- Failures become SyncError: logged, kept in failures(), handed to failure
  listeners, and set on the job's Future. No retry, no rollback.
- A job still running after `timeout` seconds is reported as a timeout
  SyncError. The call itself cannot be interrupted; later jobs stay queued
  behind it.
- fetch_snapshot() pulls every collection; any failing part fails the
  whole fetch with one aggregate SyncError.
"""
from __future__ import annotations
import threading
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout, wait
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Set, Tuple

from ..errors import SyncError
from ..utils.logging_setup import get_logger
from .remote import RemoteService, Snapshot

Step = Tuple[str, Any]
FailureListener = Callable[[SyncError], None]

_SNAPSHOT_PARTS = (
    ("projects", "fetch_projects"),
    ("tasks", "fetch_tasks"),
    ("subtasks", "fetch_subtasks"),
    ("updates", "fetch_updates"),
    ("users", "fetch_users"),
    ("categories", "fetch_categories"),
    ("task_types", "fetch_task_types"),
)


@dataclass(frozen=True)
class Session:
    """Who is signed in, as reported by the auth side. Read-only here."""
    user_id: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)


@dataclass(frozen=True)
class SyncResult:
    ok: bool
    code: str  # refreshed | failed | not_authenticated
    error: Optional[SyncError] = None


class SyncService:
    def __init__(
        self,
        remote: RemoteService,
        *,
        timeout: float = 15.0,
        refresh_timeout: float = 20.0,
    ):
        self._log = get_logger("SyncService")
        self._remote = remote
        self.timeout = timeout
        self.refresh_timeout = refresh_timeout
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="trackhub-sync")
        self._lock = threading.Lock()
        self._pending: Set[Future] = set()
        self._failures: List[SyncError] = []
        self._unflushed: List[SyncError] = []
        self._listeners: List[FailureListener] = []
        self._closed = False

    # ---- listeners ----
    def add_failure_listener(self, listener: FailureListener) -> None:
        self._listeners.append(listener)

    # ---- writes ----
    def submit(self, label: str, steps: Sequence[Step]) -> Future:
        if self._closed:
            raise SyncError(f"{label}: sync service is closed", failed=[label])
        fut = self._executor.submit(self._run, label, list(steps))
        with self._lock:
            self._pending.add(fut)
        fut.add_done_callback(self._discard)
        return fut

    def call(self, method: str, arg: Any) -> Future:
        ident = getattr(arg, "id", arg)
        return self.submit(f"{method}:{ident}", [(method, arg)])

    def _run(self, label: str, steps: List[Step]) -> None:
        overdue = threading.Event()
        watchdog = threading.Timer(self.timeout, self._overdue, (label, overdue))
        watchdog.daemon = True
        watchdog.start()
        try:
            for method, arg in steps:
                try:
                    getattr(self._remote, method)(arg)
                except Exception as exc:
                    err = SyncError(f"{label}: {method} failed: {exc}", failed=[label])
                    if overdue.is_set():
                        # already reported as a timeout
                        self._log.error("%s", err)
                    else:
                        self._record(err)
                    raise err from exc
        finally:
            watchdog.cancel()
        if overdue.is_set():
            self._log.warning("%s finished after its timeout", label)
        self._log.debug("%s ok (%d step(s))", label, len(steps))

    def _overdue(self, label: str, flag: threading.Event) -> None:
        flag.set()
        self._record(SyncError(f"{label}: timed out after {self.timeout:g}s", failed=[label]))

    def _record(self, err: SyncError) -> None:
        self._log.error("%s", err)
        with self._lock:
            self._failures.append(err)
            self._unflushed.append(err)
        for listener in list(self._listeners):
            try:
                listener(err)
            except Exception:
                self._log.exception("Sync failure listener raised")

    def _discard(self, fut: Future) -> None:
        with self._lock:
            self._pending.discard(fut)

    # ---- state ----
    def failures(self) -> List[SyncError]:
        with self._lock:
            return list(self._failures)

    def clear_failures(self) -> None:
        with self._lock:
            self._failures.clear()
            self._unflushed.clear()

    def flush(self, timeout: Optional[float] = None) -> List[SyncError]:
        """Wait for queued jobs; return the SyncErrors recorded since the
        previous flush. Raises SyncError on timeout."""
        with self._lock:
            pending = set(self._pending)
        if pending:
            _, not_done = wait(pending, timeout=self.timeout if timeout is None else timeout)
            if not_done:
                raise SyncError(f"timed out waiting for {len(not_done)} remote call(s)", failed=["flush"])
        with self._lock:
            errors, self._unflushed = self._unflushed, []
        return errors

    # ---- reads ----
    def _fetch_all(self) -> Snapshot:
        parts: dict[str, tuple] = {}
        failed: List[str] = []
        for name, method in _SNAPSHOT_PARTS:
            try:
                parts[name] = tuple(getattr(self._remote, method)())
            except Exception as exc:
                self._log.error("Fetching %s failed: %s", name, exc)
                failed.append(name)
        if failed:
            raise SyncError(f"refresh failed for: {', '.join(failed)}", failed=failed)
        return Snapshot(**parts)

    def fetch_snapshot(self, timeout: Optional[float] = None) -> Snapshot:
        """Queued behind pending writes, so the snapshot includes them."""
        if self._closed:
            raise SyncError("refresh: sync service is closed", failed=["refresh"])
        fut = self._executor.submit(self._fetch_all)
        try:
            return fut.result(timeout=self.refresh_timeout if timeout is None else timeout)
        except FutureTimeout:
            fut.cancel()
            raise SyncError("refresh timed out", failed=["refresh"]) from None

    # ---- lifecycle ----
    def close(self, *, wait_pending: bool = True) -> None:
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=wait_pending, cancel_futures=not wait_pending)
        self._log.info("SyncService closed")
