# =============================================================================
# prodomo_core/state/session.py
# Shared UI-facing state written by the data layer
# =============================================================================

from typing import Optional

# Session-state key the dashboard pages read to show the last write failure.
ERROR_KEY = "db_error"


class ErrorState:
    """Holds the human-readable message of the most recent failed write."""

    def __init__(self):
        self._message: Optional[str] = None

    @property
    def message(self) -> Optional[str]:
        return self._message

    def set(self, message: str) -> None:
        self._message = message

    def clear(self) -> None:
        self._message = None


class SessionErrorState(ErrorState):
    """ErrorState stored in ``st.session_state`` so every page sees it."""

    def __init__(self, key: str = ERROR_KEY):
        super().__init__()
        self.key = key

    @property
    def message(self) -> Optional[str]:
        import streamlit as st
        return st.session_state.get(self.key)

    def set(self, message: str) -> None:
        import streamlit as st
        st.session_state[self.key] = message

    def clear(self) -> None:
        import streamlit as st
        st.session_state[self.key] = None
