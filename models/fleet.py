"""Fleet class - the in-memory state loaded from a gateway."""

from collections import Counter
from datetime import datetime
from typing import List, Optional, TYPE_CHECKING

from .errors import NotFoundError
from .maintenance import MaintenanceAlert, compute_alerts
from .mutation import Mutation
from .user import User
from .users import bootstrap_users
from .vehicle import Vehicle

if TYPE_CHECKING:
    from .gateway import Gateway


class Fleet:
    """Vehicles, trips and users as last read from (or written to) the store."""

    def __init__(
        self,
        vehicles: Optional[List[Vehicle]] = None,
        mutations: Optional[List[Mutation]] = None,
        users: Optional[List[User]] = None,
        initial_setup: bool = False,
    ):
        self.vehicles = vehicles or []
        self.mutations = mutations or []
        self.users = users or []
        self.initial_setup = initial_setup

    @classmethod
    def load(cls, gateway: "Gateway") -> "Fleet":
        """Read a full snapshot, bootstrapping an admin when there are no users."""
        snapshot = gateway.fetch_all()
        users, initial_setup = bootstrap_users(snapshot.users)
        return cls(snapshot.vehicles, snapshot.mutations, users, initial_setup)

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        for vehicle in self.vehicles:
            if vehicle.id == vehicle_id:
                return vehicle
        raise NotFoundError(f"Kendaraan tidak ditemukan: {vehicle_id}")

    def get_mutation(self, mutation_id: str) -> Mutation:
        for mutation in self.mutations:
            if mutation.id == mutation_id:
                return mutation
        raise NotFoundError(f"Perjalanan tidak ditemukan: {mutation_id}")

    def get_user(self, user_id: str) -> User:
        for user in self.users:
            if user.id == user_id:
                return user
        raise NotFoundError(f"Pengguna tidak ditemukan: {user_id}")

    def find_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        return next((v for v in self.vehicles if v.id == vehicle_id), None)

    def find_mutation(self, mutation_id: str) -> Optional[Mutation]:
        return next((m for m in self.mutations if m.id == mutation_id), None)

    def find_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.id == user_id), None)

    def ongoing_mutation(self, vehicle_id: str) -> Optional[Mutation]:
        """The ongoing trip for a vehicle, if any."""
        for mutation in self.mutations:
            if mutation.vehicle_id == vehicle_id and mutation.is_ongoing:
                return mutation
        return None

    # -------------------------------------------------------------------------
    # Local state updates (called only after the store accepted the write)
    # -------------------------------------------------------------------------

    def replace_vehicle(self, vehicle: Vehicle) -> None:
        self.vehicles = [vehicle if v.id == vehicle.id else v for v in self.vehicles]

    def replace_mutation(self, mutation: Mutation) -> None:
        self.mutations = [
            mutation if m.id == mutation.id else m for m in self.mutations
        ]

    def replace_user(self, user: User) -> None:
        self.users = [user if u.id == user.id else u for u in self.users]

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def alerts(self, now: datetime) -> List[MaintenanceAlert]:
        """Overdue maintenance for the current vehicle list."""
        return compute_alerts(self.vehicles, now)

    def find_inconsistencies(self) -> List[str]:
        """
        Report vehicles whose status disagrees with their trips.

        A vehicle is in use iff exactly one ongoing trip refers to it. Two-step
        trip writes that failed halfway show up here.
        """
        ongoing = Counter(m.vehicle_id for m in self.mutations if m.is_ongoing)
        problems = []
        for vehicle in self.vehicles:
            count = ongoing.get(vehicle.id, 0)
            if vehicle.is_available and count:
                problems.append(
                    f"{vehicle.name}: tersedia tetapi memiliki {count} perjalanan berlangsung"
                )
            elif not vehicle.is_available and count != 1:
                problems.append(
                    f"{vehicle.name}: dalam perjalanan dengan {count} perjalanan berlangsung"
                )
        known = {v.id for v in self.vehicles}
        for vehicle_id in sorted(set(ongoing) - known):
            problems.append(f"Perjalanan berlangsung untuk kendaraan tidak dikenal: {vehicle_id}")
        return problems
