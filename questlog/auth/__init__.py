"""Authentication module exports."""

from questlog.auth.context import CurrentAuth, UserContext


__all__ = ["CurrentAuth", "UserContext"]
