"""
FastAPI router for reference catalogs.

Anyone may read a catalog; site moderators edit it. Names come back in the
request language, falling back to English.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from common.utils import success_response, list_response
from tripmates.catalog.services.catalog_service import CatalogService
from tripmates.dependencies import (
    require_moderator,
    get_catalog_service,
    get_language,
)
from tripmates.schemas.catalog import CatalogEntryCreate, CatalogEntryUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/{kind}")
async def list_entries(
    kind: str,
    catalog_service: Annotated[CatalogService, Depends(get_catalog_service)],
    language: Annotated[str, Depends(get_language)],
):
    """List a catalog (languages, interests, countries, transports, tripTypes, reportReasons)."""
    return list_response(await catalog_service.list_entries(kind, language))


@router.get("/{kind}/{entry_id}")
async def get_entry(
    kind: str,
    entry_id: str,
    catalog_service: Annotated[CatalogService, Depends(get_catalog_service)],
    language: Annotated[str, Depends(get_language)],
):
    """Get one catalog entry."""
    return success_response({"entry": await catalog_service.get_entry(kind, entry_id, language)})


@router.post("/{kind}", status_code=201)
async def create_entry(
    kind: str,
    body: CatalogEntryCreate,
    moderator: Annotated[dict, Depends(require_moderator)],
    catalog_service: Annotated[CatalogService, Depends(get_catalog_service)],
):
    """Create a catalog entry. Moderators only."""
    entry = await catalog_service.create_entry(kind, body.name, body.code)
    return success_response({"entry": entry})


@router.patch("/{kind}/{entry_id}")
async def update_entry(
    kind: str,
    entry_id: str,
    body: CatalogEntryUpdate,
    moderator: Annotated[dict, Depends(require_moderator)],
    catalog_service: Annotated[CatalogService, Depends(get_catalog_service)],
):
    """Edit a catalog entry. Moderators only."""
    entry = await catalog_service.update_entry(kind, entry_id, name=body.name, code=body.code)
    return success_response({"entry": entry})


@router.delete("/{kind}/{entry_id}")
async def delete_entry(
    kind: str,
    entry_id: str,
    moderator: Annotated[dict, Depends(require_moderator)],
    catalog_service: Annotated[CatalogService, Depends(get_catalog_service)],
):
    """Delete a catalog entry. Moderators only."""
    await catalog_service.delete_entry(kind, entry_id)
    return success_response(message="Catalog entry deleted")
