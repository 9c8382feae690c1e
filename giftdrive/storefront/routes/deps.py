"""Shared route dependencies"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Response

from ..core.errors import ErrorKind, Outcome
from ..core.session import DonorSession, SessionManager, get_session_manager

SESSION_HEADER = "X-Session-Id"

# HTTP status for each way an action can fail
FAILURE_STATUS = {
    ErrorKind.TRANSIENT: 502,
    ErrorKind.AVAILABILITY: 409,
    ErrorKind.IDENTITY: 422,
    ErrorKind.PAYMENT_CARD: 402,
    ErrorKind.PAYMENT_UNEXPECTED: 402,
    ErrorKind.PRECONDITION: 400,
    ErrorKind.BUSY: 429,
}


def current_session(
    response: Response,
    x_session_id: Optional[str] = Header(default=None),
    manager: SessionManager = Depends(get_session_manager),
) -> DonorSession:
    """Resolve the donor session from the header, creating one when absent"""
    session = manager.get_or_create_session(x_session_id)
    response.headers[SESSION_HEADER] = session.session_id
    return session


def raise_for_outcome(outcome: Outcome) -> Outcome:
    """Turn a failed outcome into an HTTPException"""
    if outcome.success:
        return outcome
    status_code = FAILURE_STATUS.get(outcome.kind, 400)
    raise HTTPException(
        status_code=status_code,
        detail={"message": outcome.message, "kind": outcome.kind.value if outcome.kind else None},
    )
