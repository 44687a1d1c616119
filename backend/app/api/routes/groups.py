from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...contracts import GroupSession
from ...groups import GroupService, GroupSessionError
from ...schemas import (
    ConstraintsUpdateRequest,
    ConstraintsUpdateResponse,
    GroupCreateRequest,
    GroupCreateResponse,
    GroupJoinRequest,
    GroupJoinResponse,
)
from ..deps import group_service
from ..sse import event_stream

router = APIRouter(prefix="/group", tags=["groups"])


def _http_error(exc: GroupSessionError) -> HTTPException:
    return HTTPException(exc.status_code, str(exc))


@router.post("/create", response_model=GroupCreateResponse)
async def create_group(payload: GroupCreateRequest, service: GroupService = Depends(group_service)):
    try:
        session = await service.create(
            payload.creator_name or "",
            payload.date or "",
            payload.time or "",
            payload.location or "",
            phone=payload.phone,
            constraints=payload.constraints,
        )
    except GroupSessionError as exc:
        raise _http_error(exc) from exc
    return GroupCreateResponse(
        session_id=session.id,
        creator_id=session.creator_id,
        join_url=f"/group/{session.id}",
        session=session,
    )


@router.get("/{session_id}", response_model=GroupSession)
async def get_group(session_id: str, service: GroupService = Depends(group_service)):
    try:
        return await service.get(session_id)
    except GroupSessionError as exc:
        raise _http_error(exc) from exc


@router.post("/{session_id}/join", response_model=GroupJoinResponse)
async def join_group(
    session_id: str, payload: GroupJoinRequest, service: GroupService = Depends(group_service)
):
    try:
        session, participant = await service.join(
            session_id, payload.name or "", payload.constraints, phone=payload.phone
        )
    except GroupSessionError as exc:
        raise _http_error(exc) from exc
    return GroupJoinResponse(participant_id=participant.id, session=session)


@router.put("/{session_id}/constraints", response_model=ConstraintsUpdateResponse)
async def update_constraints(
    session_id: str,
    payload: ConstraintsUpdateRequest,
    service: GroupService = Depends(group_service),
):
    try:
        session = await service.update_constraints(
            session_id, payload.participant_id, payload.constraints
        )
    except GroupSessionError as exc:
        raise _http_error(exc) from exc
    return ConstraintsUpdateResponse(session=session)


@router.post("/{session_id}/solve")
async def solve_group(session_id: str, service: GroupService = Depends(group_service)):
    try:
        await service.get(session_id)
    except GroupSessionError as exc:
        raise _http_error(exc) from exc
    return event_stream(service.stream_solve(session_id))
