# =============================================================================
# supervision_core/offline/draft_manager.py
# Draft persistence (sole owner of the drafts namespace)
# =============================================================================

from __future__ import annotations
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional
import logging

from supervision_core.models.records import Draft, isoformat, new_draft_id, normalize_form_data, utc_now
from supervision_core.offline.local_store import LocalStore, Namespace
from supervision_core.state import AppState
from supervision_core.ui.notifications import NoticeLevel, Notifier, logging_notifier

logger = logging.getLogger(__name__)


class DraftManager:
    """
    Upsert/load/delete over the drafts collection, keyed by draftId.

    The collection is stored as a JSON object draftId -> draft payload, so a
    draftId can only ever appear once.
    """

    def __init__(
        self,
        store: LocalStore,
        app_state: AppState,
        notifier: Notifier = logging_notifier,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._app_state = app_state
        self._notifier = notifier
        self._clock = clock

    def _read(self) -> Dict[str, Dict[str, Any]]:
        return self._store.get(Namespace.DRAFTS)

    @property
    def count(self) -> int:
        return len(self._read())

    def list_drafts(self) -> List[Draft]:
        """All drafts, most recently saved first."""
        drafts = []
        for draft_id, payload in self._read().items():
            try:
                drafts.append(Draft.from_payload({**payload, "draftId": draft_id}))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed draft {draft_id}: {e}")
        return sorted(drafts, key=lambda d: d.saved_at, reverse=True)

    def get(self, draft_id: str) -> Optional[Draft]:
        payload = self._read().get(draft_id)
        if payload is None:
            return None
        return Draft.from_payload({**payload, "draftId": draft_id})

    def save(self, form_data: Mapping[str, Any], current_section: Optional[int] = None) -> Draft:
        """
        Create or update the draft of the active editing session.

        Args:
            form_data: Raw field values of the form
            current_section: Active form page; defaults to the session's
        """
        now = self._clock()
        draft_id = self._app_state.current_draft_id or new_draft_id(now)
        section = current_section if current_section is not None else self._app_state.current_section

        draft = Draft(
            draft_id=draft_id,
            saved_at=isoformat(now),
            current_section=int(section),
            fields=normalize_form_data(form_data, exclude=("draftId", "savedAt", "currentSection")),
        )

        drafts = self._read()
        drafts[draft_id] = draft.to_payload()
        self._store.put(Namespace.DRAFTS, drafts)

        self._app_state.current_draft_id = draft_id
        self._app_state.current_section = draft.current_section
        logger.info(f"Saved draft {draft_id} ({len(drafts)} total)")
        self._notifier("Draft saved!", NoticeLevel.SUCCESS)
        return draft

    def load(self, draft_id: str) -> Optional[Draft]:
        """
        Make a stored draft the active editing session.

        Returns:
            The draft, or None when no draft has this id
        """
        draft = self.get(draft_id)
        if draft is None:
            logger.info(f"Draft not found: {draft_id}")
            return None

        self._app_state.current_draft_id = draft.draft_id
        self._app_state.current_section = draft.current_section
        self._notifier("Draft loaded", NoticeLevel.SUCCESS)
        return draft

    def delete(self, draft_id: str, notify: bool = True) -> bool:
        """
        Remove a draft. Clears the session association when it matches.

        Returns:
            True if a draft was removed
        """
        drafts = self._read()
        removed = drafts.pop(draft_id, None) is not None
        if removed:
            self._store.put(Namespace.DRAFTS, drafts)
            logger.info(f"Deleted draft {draft_id}")
        else:
            logger.info(f"Draft not found for delete: {draft_id}")

        if self._app_state.current_draft_id == draft_id:
            self._app_state.current_draft_id = None

        if removed and notify:
            self._notifier("Draft deleted", NoticeLevel.INFO)
        return removed
