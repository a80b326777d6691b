# =============================================================================
# prodomo_core/__init__.py
# Data Access Core for the Prodomo Admin Dashboard
# =============================================================================
"""
prodomo_core - remote-first persistence with a durable local fallback.

Usage:
------
from prodomo_core import get_data_access

dal = get_data_access()
users = dal.users.list_all()
dal.record_download(current_user, server_file)

get_data_access() seeds default data on first use. Scripts that wire their
own stores call initialize_remote_defaults / seed_local_defaults directly.
"""

from prodomo_core.bootstrap import initialize_remote_defaults, seed_local_defaults
from prodomo_core.services.data_access import DataAccessLayer, get_data_access

__version__ = "0.1.0"

__all__ = [
    "DataAccessLayer",
    "get_data_access",
    "initialize_remote_defaults",
    "seed_local_defaults",
    "__version__",
]
