# =============================================================================
# tests/unit/test_draft_manager.py
# Unit Tests for DraftManager
# =============================================================================

from supervision_core.offline.local_store import Namespace


class TestDraftSave:
    """Upsert by draftId"""

    def test_first_save_mints_id(self, draft_manager, app_state, clock):
        """First save mints draft_<millis>"""
        expected_millis = int(clock.now.timestamp() * 1000)
        draft = draft_manager.save({"region": "Northern"}, current_section=1)

        assert draft.draft_id == f"draft_{expected_millis}"
        assert app_state.current_draft_id == draft.draft_id
        assert draft_manager.count == 1

    def test_resave_updates_in_place(self, draft_manager, store):
        """Second save replaces the same entry"""
        first = draft_manager.save({"region": "Northern"}, current_section=1)
        second = draft_manager.save({"region": "Southern", "district": "Bo"}, current_section=2)

        stored = store.get(Namespace.DRAFTS)
        assert second.draft_id == first.draft_id
        assert list(stored) == [first.draft_id]
        assert stored[first.draft_id]["region"] == "Southern"
        assert stored[first.draft_id]["currentSection"] == 2
        assert second.saved_at > first.saved_at

    def test_new_session_creates_new_draft(self, draft_manager, app_state):
        """Cleared form starts a new draft"""
        first = draft_manager.save({"region": "Northern"})
        app_state.clear_form()
        second = draft_manager.save({"region": "Southern"})

        assert first.draft_id != second.draft_id
        assert draft_manager.count == 2

    def test_section_defaults_to_session(self, draft_manager, app_state):
        """Section comes from the session when omitted"""
        app_state.current_section = 4
        assert draft_manager.save({}).current_section == 4

    def test_save_emits_one_notice(self, draft_manager, notices):
        """Save emits one notice"""
        draft_manager.save({"region": "Northern"})
        assert notices.messages == ["Draft saved!"]

    def test_multi_values_are_flattened(self, draft_manager):
        """Multi-select values are joined"""
        draft = draft_manager.save({"access_barriers": ["Distance", "Cost"]})
        assert draft.fields["access_barriers"] == "Distance, Cost"


class TestDraftLoad:
    """Loading a draft into the editing session"""

    def test_load_restores_fields_and_section(self, draft_manager, app_state):
        """Load restores fields and section"""
        saved = draft_manager.save({"region": "Northern"}, current_section=3)
        app_state.clear_form()

        loaded = draft_manager.load(saved.draft_id)

        assert loaded.form_fields() == {"region": "Northern"}
        assert app_state.current_draft_id == saved.draft_id
        assert app_state.current_section == 3

    def test_load_missing_is_noop(self, draft_manager, app_state, notices):
        """Unknown draft id changes nothing"""
        assert draft_manager.load("draft_404") is None
        assert app_state.current_draft_id is None
        assert notices.messages == []


class TestDraftDelete:
    """Deleting drafts"""

    def test_delete_removes_entry(self, draft_manager, app_state, notices):
        """Delete removes the entry and notifies"""
        saved = draft_manager.save({"region": "Northern"})
        app_state.clear_form()

        assert draft_manager.delete(saved.draft_id)
        assert draft_manager.count == 0
        assert notices.messages[-1] == "Draft deleted"

    def test_deleting_active_draft_clears_session(self, draft_manager, app_state):
        """Deleting the active draft detaches the session"""
        saved = draft_manager.save({"region": "Northern"})
        draft_manager.delete(saved.draft_id)

        assert app_state.current_draft_id is None
        assert draft_manager.save({"region": "Northern"}).draft_id != saved.draft_id

    def test_delete_missing_returns_false(self, draft_manager, notices):
        """Deleting an unknown id is silent"""
        assert not draft_manager.delete("draft_404")
        assert notices.messages == []

    def test_list_orders_newest_first(self, draft_manager, app_state):
        """Drafts are listed newest first"""
        first = draft_manager.save({"region": "Northern"})
        app_state.clear_form()
        second = draft_manager.save({"region": "Southern"})

        assert [d.draft_id for d in draft_manager.list_drafts()] == [second.draft_id, first.draft_id]
