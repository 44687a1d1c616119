"""Group session lifecycle: create, join, edit constraints, solve.

Sessions are read, modified and written back whole. Two writers racing on the
same session resolve as last-write-wins; callers that need stronger guarantees
must serialize writes per session themselves.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import AsyncIterator
from datetime import timedelta
from typing import Any

from .contracts import GroupConstraints, GroupEvent, GroupParticipant, GroupSession, SolverResult
from .events import EventChannel, GroupEmitter
from .group_solver import GroupConstraintSolver
from .providers.base import SearchProvider
from .settings import settings
from .store import GroupSessionRepository

logger = logging.getLogger(__name__)


class GroupSessionError(Exception):
    status_code = 400


class InvalidGroupRequest(GroupSessionError):
    status_code = 400


class SessionNotFound(GroupSessionError):
    status_code = 404


class ParticipantNotFound(GroupSessionError):
    status_code = 404


class SessionClosed(GroupSessionError):
    status_code = 409


def new_session_id() -> str:
    return secrets.token_hex(4)


class GroupService:
    def __init__(self, repository: GroupSessionRepository, provider: SearchProvider) -> None:
        self.repository = repository
        self.provider = provider

    async def get(self, session_id: str) -> GroupSession:
        session = await self.repository.get(session_id)
        if session is None:
            raise SessionNotFound("Session not found")
        return session

    async def create(
        self,
        creator_name: str,
        date: str,
        time: str,
        location: str,
        *,
        phone: str | None = None,
        constraints: GroupConstraints | None = None,
    ) -> GroupSession:
        if not all(value and value.strip() for value in (creator_name, date, time, location)):
            raise InvalidGroupRequest("Missing required fields")
        creator = GroupParticipant(
            name=creator_name.strip(),
            phone=phone,
            constraints=constraints or GroupConstraints(),
        )
        session = GroupSession(
            id=new_session_id(),
            creator_id=creator.id,
            date=date.strip(),
            time=time.strip(),
            location=location.strip(),
            participants=[creator],
            expires_at=creator.joined_at + timedelta(seconds=settings.GROUP_SESSION_TTL_SECONDS),
        )
        await self.repository.put(session)
        logger.info("Group session %s created in %s", session.id, session.location)
        return session

    async def join(
        self,
        session_id: str,
        name: str,
        constraints: GroupConstraints | None = None,
        *,
        phone: str | None = None,
    ) -> tuple[GroupSession, GroupParticipant]:
        if not name or not name.strip():
            raise InvalidGroupRequest("Name is required")
        session = await self.get(session_id)
        if session.status != "collecting":
            raise SessionClosed("Session is no longer accepting participants")
        participant = GroupParticipant(
            name=name.strip(), phone=phone, constraints=constraints or GroupConstraints()
        )
        session.participants.append(participant)
        await self.repository.put(session)
        logger.info("Participant %s joined group %s", participant.id, session_id)
        return session, participant

    async def update_constraints(
        self, session_id: str, participant_id: str, constraints: GroupConstraints
    ) -> GroupSession:
        session = await self.get(session_id)
        participant = session.participant(participant_id)
        if participant is None:
            raise ParticipantNotFound("Participant not found")
        participant.constraints = constraints
        await self.repository.put(session)
        return session

    async def solve(self, session_id: str, emit: GroupEmitter) -> tuple[GroupSession, SolverResult]:
        """Run the solver against the session's current participants and persist the outcome."""
        session = await self.get(session_id)
        session.status = "solving"
        await self.repository.put(session)

        solver = GroupConstraintSolver(self.provider, emit)
        try:
            result = await solver.solve(session)
        except Exception as exc:
            logger.exception("Group solve failed for %s", session_id)
            emit("error", "Solving failed", {"detail": str(exc)})
            session.status = "collecting"
            await self.repository.put(session)
            return session, SolverResult()

        session.status = "solved" if result.solution else "collecting"
        session.solution = result.solution
        await self.repository.put(session)
        return session, result

    async def stream_solve(self, session_id: str) -> AsyncIterator[dict[str, Any]]:
        """Yield solver events as they happen, then a ``final`` frame."""
        channel: EventChannel[GroupEvent] = EventChannel(GroupEvent)

        async def run() -> tuple[GroupSession, SolverResult]:
            try:
                return await self.solve(session_id, channel.emit)
            finally:
                channel.close()

        task = asyncio.create_task(run())
        async for event in channel:
            yield event.model_dump(mode="json")
        session, result = await task
        yield {
            "type": "final",
            "result": result.model_dump(mode="json"),
            "session": session.model_dump(mode="json"),
        }


__all__ = [
    "GroupService",
    "GroupSessionError",
    "InvalidGroupRequest",
    "ParticipantNotFound",
    "SessionClosed",
    "SessionNotFound",
]
