"""Shared FastAPI dependencies.

The storage selector and the local staging store are built once in the
application lifespan and kept on ``app.state``; routes receive them here.
"""

from fastapi import Request

from ymg.database import get_session as _get_session
from ymg.storage.local import LocalStore
from ymg.storage.selector import StorageSelector

get_db = _get_session


def get_storage_selector(request: Request) -> StorageSelector:
    """The application's storage selector."""
    return request.app.state.storage


def get_local_store(request: Request) -> LocalStore:
    """The local staging store."""
    return request.app.state.local_store
