from supervision_core.state.app_state import AppState

__all__ = ["AppState"]
