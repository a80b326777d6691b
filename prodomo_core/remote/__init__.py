from .base import RemoteResult, RemoteStore, UnavailableRemoteStore

__all__ = ["RemoteResult", "RemoteStore", "UnavailableRemoteStore"]
