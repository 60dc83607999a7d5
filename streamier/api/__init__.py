"""GraphQL surface for the account service."""

from .context import GraphQLContext, get_context, get_session_id
from .schema import schema

__all__ = ["GraphQLContext", "get_context", "get_session_id", "schema"]
