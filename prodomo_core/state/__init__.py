from .session import ErrorState, SessionErrorState

__all__ = ["ErrorState", "SessionErrorState"]
