"""Users module."""

from questlog.users.models import User


__all__ = ["User"]
