"""
API Routes for Timeline Events.

Endpoints
---------
- `GET /api/events`: Full collection (public).
- `POST /api/events`: Create an event (owner only) -> 201.
- `PUT /api/events/{event_id}`: Partial update (owner only).
- `DELETE /api/events/{event_id}`: Remove an event (owner only).

Design Decisions
----------------
- **Thin Handlers**: Routes only marshal; the service decides and returns a
  `Result`, which is mapped to a status via `failure_response`.
- **Sync Endpoints**: Store calls block on the network, so handlers are plain
  `def` and FastAPI runs them in its threadpool.
- **Raw Bodies**: Bodies are taken as arbitrary JSON and validated by the
  service, so malformed input yields our 400 payload rather than FastAPI's 422.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Header, Request, status
from fastapi.responses import JSONResponse

from annals.api.schemas import DeleteResult, ErrorBody, failure_response
from annals.core.auth import OwnerGate
from annals.core.contracts import EventCollection, TimelineEvent
from annals.service import EventService

router = APIRouter(prefix="/api/events", tags=["Events"])

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"model": ErrorBody} for code in (400, 401, 404, 409, 502)
}


def get_service(request: Request) -> EventService:
    service: EventService = request.app.state.service
    return service


def owner_capability(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> bool:
    """Resolve the caller's owner capability from the bearer token."""
    gate: OwnerGate = request.app.state.owner_gate
    return gate.is_owner_header(authorization)


ServiceDep = Annotated[EventService, Depends(get_service)]
OwnerDep = Annotated[bool, Depends(owner_capability)]


@router.get(
    "",
    response_model=EventCollection,
    responses=ERROR_RESPONSES,
    summary="List all events",
)
def list_events(service: ServiceDep) -> EventCollection | JSONResponse:
    result = service.list_events()
    if result.is_err():
        return failure_response(result.unwrap_err())
    return result.unwrap()


@router.post(
    "",
    response_model=TimelineEvent,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Create an event",
)
def create_event(
    service: ServiceDep,
    is_owner: OwnerDep,
    payload: Annotated[Any, Body()] = None,
) -> TimelineEvent | JSONResponse:
    result = service.create_event(payload, is_owner=is_owner)
    if result.is_err():
        return failure_response(result.unwrap_err())
    return result.unwrap()


@router.put(
    "/{event_id}",
    response_model=TimelineEvent,
    responses=ERROR_RESPONSES,
    summary="Update an event",
)
def update_event(
    event_id: str,
    service: ServiceDep,
    is_owner: OwnerDep,
    payload: Annotated[Any, Body()] = None,
) -> TimelineEvent | JSONResponse:
    result = service.update_event(event_id, payload, is_owner=is_owner)
    if result.is_err():
        return failure_response(result.unwrap_err())
    return result.unwrap()


@router.delete(
    "/{event_id}",
    response_model=DeleteResult,
    responses=ERROR_RESPONSES,
    summary="Delete an event",
)
def delete_event(
    event_id: str,
    service: ServiceDep,
    is_owner: OwnerDep,
) -> DeleteResult | JSONResponse:
    result = service.delete_event(event_id, is_owner=is_owner)
    if result.is_err():
        return failure_response(result.unwrap_err())
    return DeleteResult()


__all__ = ["router"]
