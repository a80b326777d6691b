from .access import AccessGate, UserAccessGate, grade_allows

__all__ = ["AccessGate", "UserAccessGate", "grade_allows"]
