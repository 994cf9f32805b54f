# =============================================================================
# supervision_core/state/app_state.py
# Explicit Application State shared by the offline components
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass
class AppState:
    """
    Process-wide mutable state, injected into each component.

    is_online is written only by the ConnectionManager. current_draft_id and
    current_section describe the form instance being edited.
    """
    is_online: bool = False
    current_draft_id: Optional[str] = None
    current_section: int = 1
    username: str = "admin"

    def clear_form(self) -> None:
        """Forget the active editing session."""
        self.current_draft_id = None
        self.current_section = 1
