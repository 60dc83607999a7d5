"""Per-request GraphQL context."""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from sqlmodel import Session
from strawberry.fastapi import BaseContext

from ..config import settings
from ..database import get_session


class GraphQLContext(BaseContext):
    """Carries the database session and the caller's session id."""

    def __init__(self, db: Session, session_id: Optional[str]) -> None:
        super().__init__()
        self.db = db
        self.session_id = session_id


def get_session_id(request: Request) -> Optional[str]:
    """Return the session id sent as a bearer token or, failing that, a cookie."""

    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()

    cookie_value = request.cookies.get(settings.SESSION_COOKIE_NAME)
    return cookie_value or None


def get_context(
    request: Request,
    db: Session = Depends(get_session),
) -> GraphQLContext:
    return GraphQLContext(db=db, session_id=get_session_id(request))


__all__ = ["GraphQLContext", "get_context", "get_session_id"]
