# =============================================================================
# supervision_core/offline/connection_manager.py
# Connectivity Status Tracking
# =============================================================================
"""
ConnectionManager - tracks the online/offline flag and raises transition events.

Features:
- Initial status from a reachability probe
- Event-driven transitions via report_status() (no polling loop)
- Callbacks fired once per transition
- One user notice per transition
"""

from __future__ import annotations
import socket
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple
from urllib.parse import urlparse
import logging

from supervision_core.state import AppState
from supervision_core.ui.notifications import NoticeLevel, Notifier, logging_notifier

logger = logging.getLogger(__name__)

Probe = Callable[[], bool]


class ConnectionStatus(Enum):
    """Connection status states."""
    ONLINE = "online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"     # Before initialize()


@dataclass
class ConnectionState:
    """Current connection state with metadata."""
    status: ConnectionStatus = ConnectionStatus.UNKNOWN
    last_change: Optional[datetime] = None
    last_online: Optional[datetime] = None
    transitions: int = 0


# Well-known hosts tried when no gateway host is known
FALLBACK_HOSTS: Tuple[Tuple[str, int], ...] = (
    ("8.8.8.8", 53),        # Google DNS
    ("1.1.1.1", 53),        # Cloudflare DNS
)


def socket_probe(
    url: Optional[str] = None,
    timeout: float = 3.0,
    fallback_hosts: Sequence[Tuple[str, int]] = FALLBACK_HOSTS,
) -> Probe:
    """
    Build a reachability probe: a TCP connect to the gateway host, or to
    public DNS resolvers when the gateway is not configured.
    """
    hosts: List[Tuple[str, int]] = []
    if url:
        parsed = urlparse(url)
        if parsed.hostname:
            hosts.append((parsed.hostname, parsed.port or 443))
    hosts.extend(fallback_hosts)

    def probe() -> bool:
        for host, port in hosts:
            try:
                with socket.create_connection((host, port), timeout=timeout):
                    return True
            except OSError:
                continue
        return False

    return probe


class ConnectionManager:
    """
    Owner of AppState.is_online.

    Usage:
        manager = ConnectionManager(app_state, notifier)
        manager.initialize()
        manager.register_callback(engine.on_connection_change)
        manager.report_status(False)   # environment went offline
    """

    def __init__(
        self,
        app_state: AppState,
        notifier: Notifier = logging_notifier,
        probe: Optional[Probe] = None,
    ):
        self._app_state = app_state
        self._notifier = notifier
        self._probe = probe or socket_probe()
        self._state = ConnectionState()
        self._callbacks: List[Callable[[ConnectionState], None]] = []
        self._initialized = False

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def is_online(self) -> bool:
        return self._app_state.is_online

    def initialize(self) -> None:
        """
        Set the initial flag from the environment. Does not count as a
        transition: no notice, no callbacks.
        """
        if self._initialized:
            return

        online = self._run_probe()
        self._apply(online)
        self._initialized = True
        logger.info(f"ConnectionManager initialized. Status: {self._state.status.value}")

    def _run_probe(self) -> bool:
        try:
            return bool(self._probe())
        except Exception as e:
            logger.warning(f"Connectivity probe failed, assuming offline: {e}")
            return False

    def _apply(self, online: bool) -> None:
        now = datetime.now()
        self._app_state.is_online = online
        self._state.status = ConnectionStatus.ONLINE if online else ConnectionStatus.OFFLINE
        self._state.last_change = now
        if online:
            self._state.last_online = now

    def report_status(self, online: bool) -> bool:
        """
        Feed the environment's connectivity signal.

        Returns:
            True if this was a transition
        """
        if not self._initialized:
            self._apply(online)
            self._initialized = True
            return False

        if online == self._app_state.is_online:
            return False

        old_status = self._state.status
        self._apply(online)
        self._state.transitions += 1
        logger.info(f"Connection status changed: {old_status.value} -> {self._state.status.value}")

        if online:
            self._notifier("Back online - Syncing data...", NoticeLevel.SUCCESS)
        else:
            self._notifier("You are offline - Data will be saved locally", NoticeLevel.WARNING)

        self._notify_callbacks()
        return True

    def probe_now(self) -> bool:
        """Probe the environment once and report the result."""
        return self.report_status(self._run_probe())

    def register_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        """Register a callback for connection status changes."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in connection callback: {e}", exc_info=True)

    def get_status_display(self) -> dict:
        """Get status information for UI display."""
        return {
            "status": self._state.status.value,
            "is_online": self.is_online,
            "last_change": self._state.last_change.isoformat() if self._state.last_change else None,
            "last_online": self._state.last_online.isoformat() if self._state.last_online else None,
            "transitions": self._state.transitions,
        }
