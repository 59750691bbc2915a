"""Migration preview and execution endpoints."""

from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from ..models import (
    PreviewRequest,
    PreviewResponse,
    ExecuteRequest,
    MigrationResultResponse,
)
from ...extractors.base import NoDataFoundError
from ...loaders.base import StoreUnavailableError
from ...models.migration import MigrationConfig
from ...orchestrator import MigrationOrchestrator, create_store
from ...services.schema_mapper import MappingError

router = APIRouter()


@lru_cache(maxsize=1)
def get_orchestrator() -> MigrationOrchestrator:
    """Orchestrator wired to the store configured in the environment."""
    config = MigrationConfig.from_env()
    return MigrationOrchestrator(store=create_store(config), config=config)


@router.post("/preview", response_model=PreviewResponse)
def preview_migration(data: PreviewRequest, orchestrator: MigrationOrchestrator = Depends(get_orchestrator)):
    """Extract a dump and return the default mapping with a sample of records."""
    try:
        preview = orchestrator.generate_preview(data.content, data.source.value, data.target.value)
    except NoDataFoundError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return preview.to_dict()


@router.post("/execute", response_model=MigrationResultResponse)
def execute_migration(data: ExecuteRequest, orchestrator: MigrationOrchestrator = Depends(get_orchestrator)):
    """Run a migration with the reviewed mapping."""
    try:
        result = orchestrator.migrate_data(
            data.content,
            data.source.value,
            data.target.value,
            data.mappings,
            user_id=data.user_id,
        )
    except MappingError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return result.to_dict()
