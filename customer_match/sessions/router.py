"""
Matching session API routes.

Lets a thin front end drive a duplicate-checking "new customer" form on the
server: push keystrokes, read live candidates, submit or pick an existing
customer.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field

from customer_match.directory.models import CandidateMatch
from customer_match.matching.notifier import Notification
from customer_match.matching.session import SessionStateError
from customer_match.sessions.registry import (
    SessionEntry,
    SessionNotFoundError,
    SessionRegistry,
    get_registry,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


class InputRequest(BaseModel):
    """Current values of the two user-editable fields."""

    name: str = ""
    phone: str = ""


class SubmitRequest(BaseModel):
    initial_credit: Optional[float] = Field(default=None, ge=0)


class SelectRequest(BaseModel):
    candidate_id: Union[int, str]


class SessionView(BaseModel):
    """Snapshot of a session for the front end."""

    session_id: str
    state: str
    name: str
    phone: str
    duplicate_risk: bool
    candidates: List[CandidateMatch] = Field(default_factory=list)
    notifications: List[Notification] = Field(default_factory=list)
    metrics: Dict[str, Any] = Field(default_factory=dict)


def _view(entry: SessionEntry) -> SessionView:
    session = entry.session
    return SessionView(
        session_id=session.session_id,
        state=session.state.value,
        name=session.name,
        phone=session.phone,
        duplicate_risk=session.has_duplicate_risk,
        candidates=list(session.candidates),
        notifications=list(entry.notifier.items),
        metrics=session.metrics.to_dict(),
    )


def _lookup(registry: SessionRegistry, session_id: str) -> SessionEntry:
    try:
        return registry.get(session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found",
        )


@router.post("", response_model=SessionView, status_code=status.HTTP_201_CREATED)
async def create_session(registry: SessionRegistry = Depends(get_registry)):
    """Open a new form session."""
    return _view(registry.create())


@router.get("/{session_id}", response_model=SessionView)
async def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Current state, candidates, notifications and metrics."""
    return _view(_lookup(registry, session_id))


@router.put(
    "/{session_id}/input",
    response_model=SessionView,
    status_code=status.HTTP_202_ACCEPTED,
)
async def update_input(
    session_id: str,
    body: InputRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """
    Push the latest field values.

    Matching runs after the debounce period; poll ``GET /sessions/{id}`` for
    the resulting candidates.
    """
    entry = _lookup(registry, session_id)
    entry.session.input_changed(body.name, body.phone)
    return _view(entry)


@router.post(
    "/{session_id}/submit",
    response_model=CandidateMatch,
    status_code=status.HTTP_201_CREATED,
)
async def submit(
    session_id: str,
    body: Optional[SubmitRequest] = None,
    registry: SessionRegistry = Depends(get_registry),
):
    """
    Create the customer unless validation or the duplicate guard says no.

    Returns 422 for missing fields, 409 when an existing customer has the
    same phone number and 502 when the directory refused the creation.
    """
    entry = _lookup(registry, session_id)
    initial_credit = body.initial_credit if body else None

    try:
        outcome = await entry.session.submit(initial_credit=initial_credit)
    except SessionStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if outcome.status == "invalid":
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"errors": outcome.errors},
        )
    if outcome.status == "blocked" and outcome.exact_match is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": "A customer with this phone number already exists: "
                f"{outcome.exact_match.name}",
                "existing": outcome.exact_match.model_dump(by_alias=True),
            },
        )
    if outcome.status == "failed" or outcome.created is None:
        logger.error(f"Customer creation failed for session {session_id}: {outcome.error}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to create customer: {outcome.error or 'Unknown error'}",
        )

    return outcome.created


@router.post("/{session_id}/select", response_model=CandidateMatch)
async def select_existing(
    session_id: str,
    body: SelectRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """Use one of the currently suggested customers instead of creating one."""
    entry = _lookup(registry, session_id)
    wanted = str(body.candidate_id)
    candidate = next(
        (c for c in entry.session.candidates if str(c.id) == wanted), None
    )
    if candidate is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Customer {body.candidate_id} is not among the current candidates",
        )

    try:
        entry.session.select_existing(candidate)
    except SessionStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return candidate


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    session_id: str, registry: SessionRegistry = Depends(get_registry)
):
    """Dispose the session; pending lookups are discarded."""
    _lookup(registry, session_id)
    registry.close(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
