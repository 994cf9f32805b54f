# =============================================================================
# supervision_core/offline/services.py
# Startup wiring for the offline components
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import logging

from supervision_core.api.gateway import GatewayConfig, SheetsGateway
from supervision_core.config import Settings
from supervision_core.offline.connection_manager import ConnectionManager, Probe, socket_probe
from supervision_core.offline.draft_manager import DraftManager
from supervision_core.offline.local_store import LocalStore
from supervision_core.offline.sync_engine import SweepResult, SyncEngine
from supervision_core.state import AppState
from supervision_core.ui.notifications import Notifier, logging_notifier

logger = logging.getLogger(__name__)


@dataclass
class OfflineServices:
    """Everything the UI needs, built once per session."""
    settings: Settings
    app_state: AppState
    store: LocalStore
    gateway: SheetsGateway
    connection_manager: ConnectionManager
    draft_manager: DraftManager
    sync_engine: SyncEngine
    entry_sweep_done: bool = False

    def enter_main_view(self) -> Optional[SweepResult]:
        """
        Opportunistic sweep, run once per entry to the main view rather than
        on every Streamlit rerun.
        """
        if self.entry_sweep_done:
            return None
        self.entry_sweep_done = True
        return self.sync_engine.sync_if_pending()

    def leave_main_view(self) -> None:
        self.entry_sweep_done = False

    def close(self) -> None:
        self.store.close()
        self.gateway.session.close()


def build_services(
    settings: Settings,
    notifier: Notifier = logging_notifier,
    probe: Optional[Probe] = None,
    gateway: Optional[SheetsGateway] = None,
    app_state: Optional[AppState] = None,
) -> OfflineServices:
    """
    Construct the components from persisted storage and wire the reconnect
    callback. Corrupt stored collections read as empty, so this never fails
    on bad local data.
    """
    app_state = app_state or AppState(username=settings.login_username)
    store = LocalStore(settings.db_path)
    store.initialize()

    gateway = gateway or SheetsGateway(GatewayConfig.from_settings(settings))
    if probe is None:
        probe = socket_probe(
            settings.script_url if settings.gateway_configured else None,
            timeout=min(settings.request_timeout, 3.0),
        )

    connection_manager = ConnectionManager(app_state, notifier, probe)
    draft_manager = DraftManager(store, app_state, notifier)
    sync_engine = SyncEngine(store, gateway, app_state, draft_manager, notifier, settings)

    connection_manager.initialize()
    connection_manager.register_callback(sync_engine.on_connection_change)

    logger.info(
        f"Offline services ready: online={app_state.is_online}, "
        f"pending={sync_engine.pending_count}, drafts={draft_manager.count}"
    )
    return OfflineServices(
        settings=settings,
        app_state=app_state,
        store=store,
        gateway=gateway,
        connection_manager=connection_manager,
        draft_manager=draft_manager,
        sync_engine=sync_engine,
    )
