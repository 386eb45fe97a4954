"""Storage endpoints: backend status and staged-data migration."""

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ymg.auth.dependencies import get_current_user_id
from ymg.dependencies import get_local_store, get_storage_selector
from ymg.middleware.error_handler import EndpointError
from ymg.storage.errors import MigrationError
from ymg.storage.local import LocalStore, has_staged_data
from ymg.storage.migration import migrate_if_needed
from ymg.storage.selector import StorageSelector

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/storage", tags=["Storage"])


class _CamelResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StorageStatusResponse(_CamelResponse):
    storage_type: str
    hosted_enabled: bool
    has_local_data: bool


class MigrationResponse(_CamelResponse):
    migrated: bool
    user_id: str


@router.get("/status", response_model=StorageStatusResponse)
async def storage_status(
    user_id: str = Depends(get_current_user_id),
    selector: StorageSelector = Depends(get_storage_selector),
    local_store: LocalStore = Depends(get_local_store),
) -> StorageStatusResponse:
    """Active backend type and whether the caller still has staged local data."""
    return StorageStatusResponse(
        storage_type=selector.get_storage_type().value,
        hosted_enabled=selector.is_hosted_enabled(),
        has_local_data=await has_staged_data(local_store, user_id),
    )


@router.post("/migrate", response_model=MigrationResponse)
async def migrate(
    user_id: str = Depends(get_current_user_id),
    selector: StorageSelector = Depends(get_storage_selector),
    local_store: LocalStore = Depends(get_local_store),
) -> MigrationResponse:
    """Move the caller's staged local data into hosted storage."""
    try:
        migrated = await migrate_if_needed(selector, local_store, user_id)
    except MigrationError as e:
        logger.error("migration_request_failed", user_id=user_id, error=str(e))
        raise EndpointError(502, "Migration failed", str(e)) from e
    return MigrationResponse(migrated=migrated, user_id=user_id)
