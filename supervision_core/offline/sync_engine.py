# =============================================================================
# supervision_core/offline/sync_engine.py
# Submission routing and pending-queue synchronization
# =============================================================================
"""
SyncEngine - routes completed submissions and reconciles the pending queue.

Features:
- Every submission is archived locally before anything else happens
- Immediate delivery when online, offline queuing otherwise or on failure
- Retry sweeps on reconnect, removing delivered items by submissionId
- Compare-and-swap queue updates, so a submit() racing a sweep is never lost
- Concurrent sweeps never deliver the same item at the same time

Delivery success is transport-level only unless the gateway runs in
ACKNOWLEDGED mode: "delivered" means the request completed without error.
There is no backoff, retry limit, or dead-lettering; an item stays queued
until a sweep delivers it.
"""

from __future__ import annotations
import hashlib
import json
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set
import logging

from supervision_core.api.gateway import SheetsGateway
from supervision_core.config import Settings
from supervision_core.errors import StorageError
from supervision_core.models.records import SubmissionRecord
from supervision_core.offline.connection_manager import ConnectionState, ConnectionStatus
from supervision_core.offline.draft_manager import DraftManager
from supervision_core.offline.local_store import LocalStore, Namespace
from supervision_core.state import AppState
from supervision_core.ui.notifications import NoticeLevel, Notifier, logging_notifier

logger = logging.getLogger(__name__)

Payload = Dict[str, Any]


class SubmitOutcome(Enum):
    """Which path a submission took."""
    DELIVERED = "delivered"
    QUEUED = "queued"


@dataclass
class SweepResult:
    """Outcome of one retry sweep."""
    attempted: int = 0
    cleared: int = 0
    failed: int = 0
    skipped: int = 0            # Already in flight in another sweep
    skipped_reason: Optional[str] = None


@dataclass
class SyncState:
    """Current sync state."""
    active_sweeps: int = 0
    last_sweep: Optional[datetime] = None
    last_sweep_success: Optional[datetime] = None
    total_synced: int = 0
    last_result: Optional[SweepResult] = None

    @property
    def is_syncing(self) -> bool:
        return self.active_sweeps > 0


def entry_id(payload: Payload) -> str:
    """
    Identity of a queued payload: its submissionId, or a content hash for
    entries written before ids were assigned.
    """
    submission_id = payload.get("submissionId")
    if submission_id:
        return str(submission_id)
    digest = hashlib.sha1(json.dumps(payload, sort_keys=True).encode("utf-8"))
    return f"sha1:{digest.hexdigest()}"


class SyncEngine:
    """
    Owner of the pending queue and the submissions archive.

    Usage:
        engine = SyncEngine(store, gateway, app_state, draft_manager, notifier)
        connection_manager.register_callback(engine.on_connection_change)
        engine.submit(record)
        engine.retry_sweep()
    """

    def __init__(
        self,
        store: LocalStore,
        gateway: SheetsGateway,
        app_state: AppState,
        draft_manager: Optional[DraftManager] = None,
        notifier: Notifier = logging_notifier,
        settings: Optional[Settings] = None,
    ):
        settings = settings or Settings()
        self._store = store
        self._gateway = gateway
        self._app_state = app_state
        self._draft_manager = draft_manager
        self._notifier = notifier
        self._cas_max_attempts = settings.cas_max_attempts
        self._archive_max_records = settings.archive_max_records
        self._state = SyncState()
        self._in_flight: Set[str] = set()
        self._lock = threading.Lock()

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_syncing(self) -> bool:
        return self._state.is_syncing

    # =========================================================================
    # COLLECTIONS
    # =========================================================================

    def pending(self) -> List[Payload]:
        return [p for p in self._store.get(Namespace.PENDING) if isinstance(p, dict)]

    def archive(self) -> List[Payload]:
        return [p for p in self._store.get(Namespace.SUBMISSIONS) if isinstance(p, dict)]

    @property
    def pending_count(self) -> int:
        return len(self.pending())

    def _update(self, namespace: Namespace, mutate: Callable[[List[Any]], List[Any]]) -> List[Any]:
        """
        Read-modify-write a list namespace under compare-and-swap.

        Raises:
            StorageError: if every attempt lost a version race
        """
        for attempt in range(1, self._cas_max_attempts + 1):
            current, version = self._store.get_versioned(namespace)
            updated = mutate(list(current))
            if self._store.compare_and_put(namespace, updated, version):
                return updated
            logger.debug(f"Retrying {namespace.value} update (attempt {attempt})")
        raise StorageError(
            f"Gave up updating {namespace.value} after {self._cas_max_attempts} conflicting writes",
            namespace=namespace.value,
        )

    def _append_archive(self, payload: Payload) -> None:
        def append(archive: List[Any]) -> List[Any]:
            archive.append(payload)
            limit = self._archive_max_records
            if limit is None or len(archive) <= limit:
                return archive

            # Records still awaiting delivery are never evicted
            queued = {entry_id(p) for p in self.pending()}
            excess = len(archive) - limit
            kept = []
            for entry in archive[:-1]:
                evictable = not isinstance(entry, dict) or entry_id(entry) not in queued
                if excess and evictable:
                    excess -= 1
                    continue
                kept.append(entry)
            kept.append(payload)

            dropped = len(archive) - len(kept)
            if dropped:
                logger.info(f"Archive retention: dropping {dropped} oldest delivered record(s)")
            return kept

        self._update(Namespace.SUBMISSIONS, append)

    def _enqueue(self, payload: Payload) -> None:
        def append(queue: List[Any]) -> List[Any]:
            queue.append(payload)
            return queue

        self._update(Namespace.PENDING, append)

    # =========================================================================
    # SUBMIT
    # =========================================================================

    def submit(self, record: SubmissionRecord) -> SubmitOutcome:
        """
        Archive a completed submission, then deliver it or queue it.

        Raises:
            StorageError: if the submission could not be written locally; the
                originating draft is left untouched
        """
        payload = record.to_payload()
        self._append_archive(payload)

        if self._app_state.is_online:
            try:
                self._deliver(payload)
            except Exception as e:
                logger.warning(f"Online delivery failed, queuing {record.submission_id}: {e}")
            else:
                self._finish(record)
                self._notifier("Submission successful!", NoticeLevel.SUCCESS)
                return SubmitOutcome.DELIVERED

        self._enqueue(payload)
        self._finish(record)
        logger.info(f"Queued submission {record.submission_id} ({self.pending_count} pending)")
        self._notifier("Saved offline - Will sync when online", NoticeLevel.WARNING)
        return SubmitOutcome.QUEUED

    def _deliver(self, payload: Payload) -> None:
        if not self._gateway.is_configured:
            # Nothing to deliver to; the archive copy is the only copy
            logger.debug("Remote gateway not configured, keeping submission local")
            return
        self._gateway.deliver(payload)

    def _finish(self, record: SubmissionRecord) -> None:
        """Drop the originating draft and reset the form session."""
        draft_id = record.draft_id or self._app_state.current_draft_id
        if draft_id and self._draft_manager is not None:
            self._draft_manager.delete(draft_id, notify=False)
        self._app_state.clear_form()

    # =========================================================================
    # RETRY SWEEP
    # =========================================================================

    def _claim(self, snapshot: List[Payload]) -> List[Payload]:
        """
        Reserve snapshot items not already being delivered by another sweep.
        Content-identical legacy entries share an id and are claimed once.
        """
        claimed = []
        seen: Set[str] = set()
        with self._lock:
            for payload in snapshot:
                key = entry_id(payload)
                if key in seen:
                    continue
                seen.add(key)
                if key in self._in_flight:
                    continue
                self._in_flight.add(key)
                claimed.append(payload)
        return claimed

    def _release(self, claimed: List[Payload]) -> None:
        with self._lock:
            for payload in claimed:
                self._in_flight.discard(entry_id(payload))

    def _prune(self, delivered: Set[str]) -> int:
        """Remove delivered ids from the queue. Returns the number of entries removed."""
        removed = 0

        def without_delivered(queue: List[Any]) -> List[Any]:
            nonlocal removed
            kept = [p for p in queue if not (isinstance(p, dict) and entry_id(p) in delivered)]
            removed = len(queue) - len(kept)
            return kept

        self._update(Namespace.PENDING, without_delivered)
        return removed

    def retry_sweep(self) -> SweepResult:
        """
        Attempt delivery of every queued item once, then remove the ones
        that were delivered.
        """
        if not self._gateway.is_configured:
            return SweepResult(skipped_reason="gateway_not_configured")

        snapshot = self.pending()
        if not snapshot:
            return SweepResult(skipped_reason="queue_empty")

        claimed = self._claim(snapshot)
        unique = len({entry_id(p) for p in snapshot})
        result = SweepResult(attempted=len(claimed), skipped=unique - len(claimed))

        with self._lock:
            self._state.active_sweeps += 1
        self._state.last_sweep = datetime.now()
        logger.info(f"Retry sweep: {len(claimed)} to deliver, {result.skipped} already in flight")

        delivered: Set[str] = set()
        pruned = True
        try:
            for payload in claimed:
                try:
                    self._gateway.deliver(payload)
                    delivered.add(entry_id(payload))
                except Exception as e:
                    result.failed += 1
                    logger.error(f"Error syncing submission {entry_id(payload)}: {e}")

            if delivered:
                try:
                    result.cleared = self._prune(delivered)
                except StorageError as e:
                    # Delivered items stay queued and are sent again next sweep
                    pruned = False
                    logger.error(f"Could not prune pending queue: {e}")
        finally:
            self._release(claimed)
            with self._lock:
                self._state.active_sweeps -= 1

        self._state.total_synced += result.cleared
        self._state.last_result = result
        if result.failed == 0 and pruned:
            self._state.last_sweep_success = datetime.now()

        logger.info(f"Sweep complete: {result.cleared} cleared, {result.failed} failed")
        if result.cleared:
            self._notifier(f"Synced {result.cleared} submission(s)", NoticeLevel.SUCCESS)
        return result

    def sync_if_pending(self) -> Optional[SweepResult]:
        """Opportunistic sweep when the main view is shown."""
        if not self._app_state.is_online or self.pending_count == 0:
            return None
        return self.retry_sweep()

    def on_connection_change(self, state: ConnectionState) -> None:
        """ConnectionManager callback: one sweep per transition to online."""
        if state.status is ConnectionStatus.ONLINE:
            logger.info("Connection restored, triggering sync")
            self.retry_sweep()

    def get_status_display(self) -> Dict[str, Any]:
        """Get sync status for UI display."""
        last = self._state.last_result
        return {
            "is_syncing": self._state.is_syncing,
            "last_sweep": self._state.last_sweep.isoformat() if self._state.last_sweep else None,
            "last_success": self._state.last_sweep_success.isoformat() if self._state.last_sweep_success else None,
            "pending_count": self.pending_count,
            "archived_count": len(self.archive()),
            "last_failed": last.failed if last else 0,
            "total_synced": self._state.total_synced,
        }
