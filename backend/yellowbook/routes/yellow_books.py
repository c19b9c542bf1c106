"""
Yellow Book API: Directory Entry Route Handlers
================================================

What:  GET /yellow-books (list, optional ?q= search), GET /yellow-books/{id}
       and POST /yellow-books.
How:   Extracts request data, delegates to EntryService with the
       application's gateway, returns the validated envelope.
Who:   Called by the web frontend at build time, on its 60-second
       revalidation cycle, and by its server-side search page.

Caching Strategy:
    - GET endpoints: shared caches may serve for `revalidate_seconds`
      (s-maxage) and revalidate in the background afterwards; browsers always
      revalidate (max-age=0).
    - POST: never cached.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response

from yellowbook.gateway import YellowBookGateway, get_gateway
from yellowbook.schemas.yellow_book import (
    EntryListResponse,
    EntryResponse,
    ErrorResponse,
)
from yellowbook.services.entry_service import entry_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/yellow-books", tags=["Yellow Books"])


def _set_cache_headers(request: Request, response: Response) -> None:
    seconds = request.app.state.settings.revalidate_seconds
    response.headers["Cache-Control"] = (
        f"public, max-age=0, s-maxage={seconds}, stale-while-revalidate={seconds}"
    )


@router.get(
    "",
    response_model=EntryListResponse,
    response_model_exclude_none=True,
    responses={
        500: {"description": "Storage failure or stored data drift", "model": ErrorResponse},
    },
    summary="List directory entries",
    description=(
        "Returns every entry, newest first. With `q`, only entries whose name, "
        "category or address contains `q` (case-insensitive) or whose phone "
        "number contains `q`."
    ),
)
async def list_yellow_books(
    request: Request,
    response: Response,
    q: Optional[str] = Query(
        default=None,
        max_length=200,
        description="Substring search over name, category, address and phone number",
    ),
    gateway: YellowBookGateway = Depends(get_gateway),
) -> EntryListResponse:
    result = await entry_service.list_entries(gateway, query=q)
    _set_cache_headers(request, response)
    return result


@router.get(
    "/{entry_id}",
    response_model=EntryResponse,
    response_model_exclude_none=True,
    responses={
        400: {"description": "Id is not a positive integer", "model": ErrorResponse},
        404: {"description": "Entry not found", "model": ErrorResponse},
        500: {"description": "Storage failure or stored data drift", "model": ErrorResponse},
    },
    summary="Get a single directory entry",
)
async def get_yellow_book(
    entry_id: str,
    request: Request,
    response: Response,
    gateway: YellowBookGateway = Depends(get_gateway),
) -> EntryResponse:
    """
    Args:
        entry_id: Raw path segment. Parsed by EntryService so that a
                  non-numeric id answers 400 without touching storage.
    """
    result = await entry_service.get_entry(gateway, entry_id)
    _set_cache_headers(request, response)
    return result


@router.post(
    "",
    status_code=201,
    response_model=EntryResponse,
    response_model_exclude_none=True,
    responses={
        201: {"description": "Entry created", "model": EntryResponse},
        400: {"description": "Body failed validation", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Create a directory entry",
    description=(
        "Body: businessName, category, phoneNumber, address, optional description "
        "and website. Any id, createdAt or updatedAt in the body is ignored."
    ),
)
async def create_yellow_book(
    payload: Dict[str, Any] = Body(
        ...,
        examples=[
            {
                "businessName": "Acme",
                "category": "Retail",
                "phoneNumber": "+976-7000-0000",
                "address": "UB",
            }
        ],
    ),
    gateway: YellowBookGateway = Depends(get_gateway),
) -> EntryResponse:
    result = await entry_service.create_entry(gateway, payload)
    logger.info("Yellow book entry %d created", result.data.id)
    return result
