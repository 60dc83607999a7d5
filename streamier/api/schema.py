"""GraphQL types, queries and mutations."""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, TypeVar

import strawberry
from fastapi.concurrency import run_in_threadpool
from graphql import GraphQLError
from strawberry.types import Info

from ..auth import models, service
from ..auth.errors import AuthError
from ..auth.models import as_utc
from .context import GraphQLContext

_T = TypeVar("_T")


@strawberry.type
class User:
    id: strawberry.ID
    email: str
    is_email_verified: bool

    @classmethod
    def from_model(cls, user: models.User) -> "User":
        return cls(
            id=strawberry.ID(user.id),
            email=user.email,
            is_email_verified=bool(user.is_email_verified),
        )


@strawberry.type
class UserSession:
    id: strawberry.ID
    expires_at: datetime

    @classmethod
    def from_model(cls, user_session: models.UserSession) -> "UserSession":
        return cls(
            id=strawberry.ID(user_session.id),
            expires_at=as_utc(user_session.expires_at),
        )


@strawberry.input
class SignUpInput:
    email: str
    password: str


@strawberry.input
class SignInInput:
    email: str
    password: str
    expiration_date: datetime
    two_factor_code: Optional[str] = None


async def _call(func: Callable[..., _T], *args, **kwargs) -> _T:
    """Run a blocking account operation off the event loop.

    ``AuthError`` is re-raised as a ``GraphQLError`` carrying its code.
    """

    try:
        return await run_in_threadpool(func, *args, **kwargs)
    except AuthError as exc:
        raise GraphQLError(exc.message, extensions=exc.extensions) from exc


@strawberry.type
class Query:
    @strawberry.field(description="The user owning the caller's session.")
    async def me(self, info: Info[GraphQLContext, None]) -> Optional[User]:
        context = info.context
        user = await _call(service.get_user_for_session, context.db, context.session_id)
        return User.from_model(user) if user else None


@strawberry.type
class Mutation:
    @strawberry.mutation(description="Create a new account.")
    async def sign_up(self, info: Info[GraphQLContext, None], input: SignUpInput) -> User:
        user = await _call(
            service.sign_up, info.context.db, input.email, input.password
        )
        return User.from_model(user)

    @strawberry.mutation(description="Open a session for an existing account.")
    async def sign_in(
        self, info: Info[GraphQLContext, None], input: SignInInput
    ) -> UserSession:
        user_session = await _call(
            service.sign_in,
            info.context.db,
            input.email,
            input.password,
            input.expiration_date,
            input.two_factor_code,
        )
        return UserSession.from_model(user_session)

    @strawberry.mutation(description="End the caller's session.")
    async def delete_session(self, info: Info[GraphQLContext, None]) -> bool:
        context = info.context
        return await _call(service.delete_session, context.db, context.session_id)


schema = strawberry.Schema(query=Query, mutation=Mutation)


__all__ = ["Mutation", "Query", "SignInInput", "SignUpInput", "User", "UserSession", "schema"]
