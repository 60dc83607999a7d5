"""Account registration and session service exposed over GraphQL."""
