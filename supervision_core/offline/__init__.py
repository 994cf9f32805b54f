# =============================================================================
# supervision_core/offline/__init__.py
# Offline-First Submission Handling for the Supervision Collector
# =============================================================================
"""
Offline-First Architecture Module

A completed supervision form is always archived locally, then either
delivered to the spreadsheet backend or queued until connectivity returns.

Architecture:
------------
    form ──► SyncEngine.submit() ──► archive (always)
                    │
          online? ──┼── yes ──► SheetsGateway.deliver() ──ok──► done
                    │                     │ error
                    └── no ───────────────┴──► pending queue
                                                   ▲
    ConnectionManager ── back online ──► SyncEngine.retry_sweep()

    LocalStore (SQLite) holds three JSON collections:
      supervisionDrafts       owned by DraftManager
      supervisionPending      owned by SyncEngine
      supervisionSubmissions  owned by SyncEngine

Usage:
------
from supervision_core.offline import build_services

services = build_services(settings, notifier=streamlit_notifier)
services.sync_engine.submit(record)
"""

from supervision_core.offline.connection_manager import (
    ConnectionManager,
    ConnectionState,
    ConnectionStatus,
    socket_probe,
)

from supervision_core.offline.local_store import (
    LocalStore,
    Namespace,
)

from supervision_core.offline.draft_manager import DraftManager

from supervision_core.offline.sync_engine import (
    SyncEngine,
    SyncState,
    SubmitOutcome,
    SweepResult,
)

from supervision_core.offline.services import (
    OfflineServices,
    build_services,
)

__all__ = [
    # Connectivity
    "ConnectionManager",
    "ConnectionState",
    "ConnectionStatus",
    "socket_probe",
    # Local Store
    "LocalStore",
    "Namespace",
    # Drafts
    "DraftManager",
    # Sync Engine
    "SyncEngine",
    "SyncState",
    "SubmitOutcome",
    "SweepResult",
    # Wiring
    "OfflineServices",
    "build_services",
]
