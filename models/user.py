"""User class for the two-role user directory."""

import copy

from .status import Role


class User:
    """A dashboard user. The password is stored in plaintext."""

    def __init__(self, id: str, username: str, password: str, role: Role):
        self.id = id
        self.username = username
        self.password = password
        self.role = role

    def __repr__(self) -> str:
        return f"User({self.id!r}, {self.username!r}, {self.role.name})"

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def copy(self, **changes) -> "User":
        other = copy.copy(self)
        for key, value in changes.items():
            if not hasattr(other, key):
                raise AttributeError(f"User has no attribute '{key}'")
            setattr(other, key, value)
        return other
