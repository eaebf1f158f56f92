"""Session identity of the running client."""

from typing import Optional

from .user import User


class Session:
    """
    The currently authenticated user, if any.

    Opened by a successful login and cleared by logout. Sessions do not
    expire on their own.
    """

    def __init__(self, user: Optional[User] = None):
        self.user = user

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    def open(self, user: User) -> None:
        self.user = user

    def clear(self) -> None:
        self.user = None

    def refresh(self, user: User) -> None:
        """Replace the cached copy when it is the same identity."""
        if self.user is not None and self.user.id == user.id:
            self.user = user
