"""User directory: bootstrap, login and user management."""

import logging
from typing import Callable, List, Tuple, Union, TYPE_CHECKING

from .errors import AuthenticationError, AuthorizationError, ValidationError
from .records import USERS, filled, new_id
from .session import Session
from .status import Role
from .user import User

if TYPE_CHECKING:
    from .fleet import Fleet
    from .gateway import Gateway

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_ID = "u0"
DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "password"

MIN_PASSWORD_LENGTH = 6

CONFIRM_DELETE = "Apakah Anda yakin ingin menghapus pengguna ini?"


def default_admin() -> User:
    """The synthetic administrator used before any user exists."""
    return User(
        DEFAULT_ADMIN_ID, DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_PASSWORD, Role.ADMIN
    )


def bootstrap_users(users: List[User]) -> Tuple[List[User], bool]:
    """
    Return the user list to work with and the initial-setup flag.

    An empty store yields one synthetic admin (not persisted) and True.
    """
    if not users:
        logger.warning(
            "No users in store; using default admin '%s' for initial setup",
            DEFAULT_ADMIN_USERNAME,
        )
        return [default_admin()], True
    return list(users), False


def parse_role(role: Union[Role, str]) -> Role:
    """Accept a Role or its name/value in any case ('admin', 'Operator')."""
    if isinstance(role, Role):
        return role
    text = str(role).strip()
    for candidate in Role:
        if text.lower() in (candidate.value.lower(), candidate.name.lower()):
            return candidate
    raise ValidationError(f"Peran tidak dikenal: {role}")


class UserDirectory:
    """User operations against the fleet state, the store and the session."""

    def __init__(self, fleet: "Fleet", gateway: "Gateway", session: Session):
        self.fleet = fleet
        self.gateway = gateway
        self.session = session

    @property
    def users(self) -> List[User]:
        return self.fleet.users

    @property
    def initial_setup(self) -> bool:
        return self.fleet.initial_setup

    def _require_admin(self) -> None:
        if not self.session.is_admin:
            raise AuthorizationError("Anda tidak memiliki hak akses untuk halaman ini.")

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    def authenticate(self, username: str, password: str) -> User:
        """Exact, case-sensitive match on both fields. Opens the session."""
        for user in self.fleet.users:
            if user.username == username and user.password == password:
                self.session.open(user)
                logger.info("User '%s' logged in", username)
                return user
        logger.info("Failed login for '%s'", username)
        raise AuthenticationError("Username atau password salah.")

    def logout(self) -> None:
        self.session.clear()

    # -------------------------------------------------------------------------
    # Management
    # -------------------------------------------------------------------------

    def list_users(self) -> List[User]:
        """Every user, for the management screen."""
        self._require_admin()
        return list(self.fleet.users)

    def create_user(self, username: str, password: str, role: Union[Role, str]) -> User:
        """
        Create and persist a user.

        During initial setup the new user replaces the synthetic admin
        instead of joining it.
        """
        self._require_admin()
        if not filled(username) or not isinstance(password, str) or not password:
            raise ValidationError("Harap isi semua kolom.")
        user = User(new_id("u"), username.strip(), password, parse_role(role))

        self.gateway.add_row(USERS, user)

        if self.fleet.initial_setup:
            self.fleet.users = [user]
            self.fleet.initial_setup = False
            logger.info("Initial setup finished with user '%s'", user.username)
        else:
            self.fleet.users = self.fleet.users + [user]
        return user

    def update_user(self, user_id: str, username: str, role: Union[Role, str]) -> User:
        """Overwrite username and role."""
        self._require_admin()
        if not filled(username):
            raise ValidationError("Username tidak boleh kosong.")
        user = self.fleet.get_user(user_id)
        updated = user.copy(username=username.strip(), role=parse_role(role))

        self.gateway.update_row(USERS, updated)

        self.fleet.replace_user(updated)
        self.session.refresh(updated)
        return updated

    def change_password(self, user_id: str, new_password: str) -> User:
        """Overwrite the password of a user. Admins may change anyone's."""
        if self.session.user_id != user_id:
            self._require_admin()
        if not isinstance(new_password, str) or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("Password minimal harus 6 karakter.")
        user = self.fleet.get_user(user_id)
        updated = user.copy(password=new_password)

        self.gateway.update_row(USERS, updated)

        self.fleet.replace_user(updated)
        self.session.refresh(updated)
        return updated

    def delete_user(self, user_id: str, confirm: Callable[[str], bool]) -> bool:
        """
        Delete a user after confirmation.

        Deleting the session identity is always rejected. Returns False when
        the confirmation is declined (nothing is sent to the store).
        """
        if user_id == self.session.user_id:
            raise ValidationError("Anda tidak dapat menghapus akun Anda sendiri.")
        self._require_admin()
        user = self.fleet.get_user(user_id)
        if not confirm(CONFIRM_DELETE):
            return False

        self.gateway.delete_row(USERS, user.id)

        self.fleet.users = [u for u in self.fleet.users if u.id != user.id]
        logger.info("Deleted user '%s'", user.username)
        return True
