"""Storage selector: chooses which backend implementation is active.

One selector is built by the application's composition root (see
``ymg.main.lifespan``) and handed to callers by reference; there is no
module-level instance. The hosted handle is built lazily, at most once.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from ymg.storage.errors import StorageNotSupportedError
from ymg.storage.hosted import HostedBackend
from ymg.storage.protocol import StorageType

logger = logging.getLogger(__name__)


class StorageSelector:
    """Holds the active storage type and the lazily built hosted backend."""

    def __init__(
        self,
        hosted_factory: Callable[[], HostedBackend],
        storage_type: StorageType = StorageType.LOCAL,
    ) -> None:
        self._hosted_factory = hosted_factory
        self._lock = threading.Lock()
        self._hosted: HostedBackend | None = None
        self._storage_type = StorageType.LOCAL
        self.set_storage_type(storage_type)

    def set_storage_type(self, storage_type: StorageType | str) -> None:
        """Record the active type; switching to hosted builds the handle if absent."""
        storage_type = StorageType(storage_type)
        self._storage_type = storage_type
        if storage_type is StorageType.HOSTED:
            self._ensure_hosted()

    def _ensure_hosted(self) -> HostedBackend:
        # Check-then-create under the lock: concurrent first switches build one handle.
        with self._lock:
            if self._hosted is None:
                self._hosted = self._hosted_factory()
                logger.info("Hosted storage backend initialized")
            return self._hosted

    @property
    def storage_type(self) -> StorageType:
        return self._storage_type

    def get_storage_type(self) -> StorageType:
        return self._storage_type

    def is_hosted_enabled(self) -> bool:
        return self._storage_type is StorageType.HOSTED

    @property
    def active_backend(self) -> HostedBackend | None:
        """The active backend handle, or None when the local store is selected."""
        if self._storage_type is StorageType.HOSTED:
            return self._hosted
        return None

    def get_active_backend(self) -> HostedBackend:
        """
        Return the active backend handle.

        Raises:
            StorageNotSupportedError: When the local store is selected. Callers
                that need plain local storage use the LocalStore directly.
        """
        backend = self.active_backend
        if backend is None:
            raise StorageNotSupportedError
        return backend

    async def close(self) -> None:
        """Dispose of the hosted handle if one was built."""
        with self._lock:
            hosted, self._hosted = self._hosted, None
        if hosted is not None:
            await hosted.close()
