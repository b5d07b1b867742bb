"""
Activity Log Service.

Tells the main app's GraphQL API that a customer or company was created.
Calls are fire-and-forget: they run on a small thread pool, failures are
logged and never reach the caller. Handlers call ``drain_pending`` before
returning so in-flight calls finish before Lambda freezes the environment.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from threading import Lock
from typing import List, Optional, Set

import requests

from utils.config import Mode, Settings
from utils.logging_config import get_logger

logger = get_logger(__name__)

CUSTOMER_LOG_MUTATION = """
mutation activityLogsAddCustomerLog($_id: String!) {
  activityLogsAddCustomerLog(_id: $_id) {
    _id
  }
}
"""

COMPANY_LOG_MUTATION = """
mutation activityLogsAddCompanyLog($_id: String!) {
  activityLogsAddCompanyLog(_id: $_id) {
    _id
  }
}
"""

# Shared across warm invocations.
_executor: Optional[ThreadPoolExecutor] = None

_pending: Set[Future] = set()
_pending_lock = Lock()


def get_executor() -> ThreadPoolExecutor:
    """Get or create the background pool used for notifications."""
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="activity-log")
    return _executor


def _track(future: Future) -> None:
    with _pending_lock:
        _pending.add(future)
    future.add_done_callback(_forget)


def _forget(future: Future) -> None:
    with _pending_lock:
        _pending.discard(future)


def drain_pending(timeout_seconds: float = 3.0) -> int:
    """
    Wait up to ``timeout_seconds`` for scheduled activity log calls.

    Returns how many were still running; those are logged, not cancelled.
    """
    with _pending_lock:
        pending = list(_pending)
    if not pending:
        return 0

    _, not_done = wait(pending, timeout=timeout_seconds)
    if not_done:
        logger.warning(
            "Activity log calls still running at end of invocation",
            extra={"pending": len(not_done)},
        )
    return len(not_done)


class ActivityLogService:
    """Best-effort sender for activity log mutations."""

    def __init__(
        self,
        api_url: str = "",
        mode: Mode = Mode.LIVE,
        session: Optional[requests.Session] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        timeout_seconds: float = 3.0,
    ):
        self.api_url = api_url
        self.mode = mode
        self.session = session or requests.Session()
        self.executor = executor
        self.timeout_seconds = timeout_seconds
        # Fixture mode keeps (query, variables) pairs here instead of sending.
        self.sent: List[tuple] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "ActivityLogService":
        return cls(api_url=settings.app_api_url, mode=settings.collaborator_mode)

    def customer_created(self, customer_id: str) -> Optional[Future]:
        return self._mutate(CUSTOMER_LOG_MUTATION, {"_id": customer_id})

    def company_created(self, company_id: str) -> Optional[Future]:
        return self._mutate(COMPANY_LOG_MUTATION, {"_id": company_id})

    def _mutate(self, query: str, variables: dict) -> Optional[Future]:
        """Schedule the mutation; returns the future so tests can wait on it."""
        if self.mode is Mode.FIXTURE:
            self.sent.append((query, variables))
            return None

        if not self.api_url:
            logger.warning("APP_API_URL not set; activity log skipped", extra=variables)
            return None

        executor = self.executor or get_executor()
        try:
            future = executor.submit(self._post, query, variables)
        except RuntimeError as exc:
            # Pool already shut down (interpreter exit).
            logger.warning("Activity log not scheduled", extra={"error": str(exc)})
            return None
        _track(future)
        return future

    def _post(self, query: str, variables: dict) -> None:
        try:
            resp = self.session.post(
                self.api_url,
                json={"query": query, "variables": variables},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout_seconds,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning(
                "Activity log call failed",
                extra={"error": str(exc), **variables},
            )
        except Exception:
            logger.exception("Activity log call crashed", extra=variables)
