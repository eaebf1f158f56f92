"""Mutation class - one vehicle trip, from check-out to check-in."""

import copy
from datetime import datetime
from typing import Optional

from .status import MutationStatus


class Mutation:
    """A trip record. Refers to a vehicle by id; never owns it."""

    def __init__(
        self,
        id: str,
        vehicle_id: str,
        driver: str,
        destination: str,
        start_time: datetime,
        start_km: int,
        status: MutationStatus = MutationStatus.ONGOING,
        driver_photo: Optional[str] = None,
        end_time: Optional[datetime] = None,
        end_km: Optional[int] = None,
        distance: Optional[int] = None,
        notes: Optional[str] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.driver = driver
        self.destination = destination
        self.start_time = start_time
        self.start_km = start_km
        self.status = status
        self.driver_photo = driver_photo
        self.end_time = end_time
        self.end_km = end_km
        self.distance = distance
        self.notes = notes

    def __repr__(self) -> str:
        return f"Mutation({self.id!r}, vehicle={self.vehicle_id!r}, {self.status.name})"

    @property
    def is_ongoing(self) -> bool:
        return self.status == MutationStatus.ONGOING

    @property
    def is_completed(self) -> bool:
        return self.status == MutationStatus.COMPLETED

    @property
    def is_report_ready(self) -> bool:
        """True when the trip has every field a printed report needs."""
        return (
            self.end_time is not None
            and self.end_km is not None
            and self.distance is not None
        )

    def copy(self, **changes) -> "Mutation":
        """Return a shallow copy with the given attributes replaced."""
        other = copy.copy(self)
        for key, value in changes.items():
            if not hasattr(other, key):
                raise AttributeError(f"Mutation has no attribute '{key}'")
            setattr(other, key, value)
        return other
