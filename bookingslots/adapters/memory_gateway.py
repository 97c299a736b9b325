"""
In-memory data gateway, optionally loaded from a JSON data set.

The JSON layout mirrors the rows of the booking database so that an export
can be fed to the engine directly:

    {
        "businesses": [{"id": 1, "type": "restaurant", "booking_advance_days": 30}],
        "services": [{"id": 1, "business_id": 1, "duration_minutes": 60, "capacity": 40}],
        "staff_members": [{"id": 7, "business_id": 2}],
        "staff_services": [{"staff_member_id": 7, "service_id": 3}],
        "availability_rules": [
            {"business_id": 1, "day_of_week": 1, "start_time": "11:00", "end_time": "22:00"}
        ],
        "special_availability": [
            {"business_id": 1, "date": "2024-12-24", "is_available": false}
        ],
        "bookings": [
            {"business_id": 1, "service_id": 1, "booking_date": "2024-12-23",
             "start_time": "19:00", "end_time": "20:00", "party_size": 4}
        ]
    }
"""

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List

from pydantic import BaseModel, Field, field_validator, model_validator

from ..domain.models import (
    BookingStatus,
    Business,
    BusinessType,
    ExistingBooking,
    Override,
    Scope,
    Service,
    StaffMember,
    WorkingHoursRule,
)
from ..domain.time_arithmetic import TimeInterval

TYPE_ALIASES = {
    "capacity-based": BusinessType.CAPACITY,
    "staff-based": BusinessType.STAFF,
}


class BusinessRow(BaseModel):
    id: int
    type: BusinessType
    booking_advance_days: int = Field(default=30, ge=0)
    is_active: bool = True

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        """Map business categories onto the two allocation models."""
        if not isinstance(value, str) or value in {t.value for t in BusinessType}:
            return value
        if value in TYPE_ALIASES:
            return TYPE_ALIASES[value]
        # Restaurants share a dining room; every other category books people.
        return BusinessType.CAPACITY if value == "restaurant" else BusinessType.STAFF


class ServiceRow(BaseModel):
    id: int
    business_id: int
    duration_minutes: int = Field(gt=0)
    buffer_before_minutes: int = Field(default=0, ge=0)
    buffer_after_minutes: int = Field(default=0, ge=0)
    capacity: int | None = Field(default=None, gt=0)
    requires_staff: bool = False
    is_active: bool = True


class StaffMemberRow(BaseModel):
    id: int
    business_id: int
    is_active: bool = True


class StaffServiceRow(BaseModel):
    staff_member_id: int
    service_id: int


class AvailabilityRuleRow(BaseModel):
    business_id: int
    staff_member_id: int | None = None
    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str
    is_active: bool = True


class SpecialAvailabilityRow(BaseModel):
    business_id: int
    staff_member_id: int | None = None
    override_date: date = Field(alias="date")
    is_available: bool = False
    start_time: str | None = None
    end_time: str | None = None

    @model_validator(mode="after")
    def validate_hours(self) -> "SpecialAvailabilityRow":
        """An open override must carry replacement hours."""
        if self.is_available and (self.start_time is None or self.end_time is None):
            raise ValueError("special availability with is_available needs start_time and end_time")
        return self


class BookingRow(BaseModel):
    business_id: int
    service_id: int
    staff_member_id: int | None = None
    booking_date: date
    start_time: str
    end_time: str
    party_size: int = Field(default=1, gt=0)
    status: BookingStatus = BookingStatus.CONFIRMED


class DataSet(BaseModel):
    """Raw rows of a data export."""
    businesses: List[BusinessRow] = Field(default_factory=list)
    services: List[ServiceRow] = Field(default_factory=list)
    staff_members: List[StaffMemberRow] = Field(default_factory=list)
    staff_services: List[StaffServiceRow] = Field(default_factory=list)
    availability_rules: List[AvailabilityRuleRow] = Field(default_factory=list)
    special_availability: List[SpecialAvailabilityRow] = Field(default_factory=list)
    bookings: List[BookingRow] = Field(default_factory=list)


class InMemoryDataGateway:
    """
    Data gateway serving reads from records held in memory.

    Holds no per-request state, so concurrent reads are safe.
    """

    def __init__(
        self,
        businesses: Iterable[Business] = (),
        services: Iterable[Service] = (),
        staff: Iterable[StaffMember] = (),
        rules: Iterable[WorkingHoursRule] = (),
        overrides: Iterable[Override] = (),
        bookings: Iterable[ExistingBooking] = (),
    ):
        self.businesses: Dict[int, Business] = {b.id: b for b in businesses}
        self.services: Dict[int, Service] = {s.id: s for s in services}
        self.staff: Dict[int, StaffMember] = {m.id: m for m in staff}
        self.rules: List[WorkingHoursRule] = list(rules)
        self.bookings: List[ExistingBooking] = list(bookings)

        self.overrides: Dict[tuple, Override] = {}
        for override in overrides:
            key = (override.scope, override.date)
            if key in self.overrides:
                raise ValueError(f"Duplicate override for {override.scope} on {override.date}")
            self.overrides[key] = override

    @classmethod
    def from_json(cls, data_path: Path) -> "InMemoryDataGateway":
        """
        Load a data set from a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the data is invalid
        """
        if not data_path.exists():
            raise FileNotFoundError(f"Data file not found: {data_path}")

        try:
            with open(data_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {data_path}: {exc}") from exc

        return cls.from_dataset(DataSet.model_validate(data))

    @classmethod
    def from_dataset(cls, dataset: DataSet) -> "InMemoryDataGateway":
        """Convert validated rows into domain records."""
        service_ids_by_staff: Dict[int, set] = {}
        for link in dataset.staff_services:
            service_ids_by_staff.setdefault(link.staff_member_id, set()).add(link.service_id)

        services = {
            row.id: Service(
                id=row.id,
                business_id=row.business_id,
                duration_minutes=row.duration_minutes,
                buffer_before_minutes=row.buffer_before_minutes,
                buffer_after_minutes=row.buffer_after_minutes,
                capacity=row.capacity or 1,
                requires_staff=row.requires_staff,
                active=row.is_active,
            )
            for row in dataset.services
        }

        return cls(
            businesses=[
                Business(
                    id=row.id,
                    type=row.type,
                    advance_booking_days=row.booking_advance_days,
                    active=row.is_active,
                )
                for row in dataset.businesses
            ],
            services=services.values(),
            staff=[
                StaffMember(
                    id=row.id,
                    business_id=row.business_id,
                    active=row.is_active,
                    service_ids=frozenset(service_ids_by_staff.get(row.id, ())),
                )
                for row in dataset.staff_members
            ],
            rules=[
                WorkingHoursRule(
                    scope=Scope(row.business_id, row.staff_member_id),
                    day_of_week=row.day_of_week,
                    window=TimeInterval.parse(row.start_time, row.end_time),
                    active=row.is_active,
                )
                for row in dataset.availability_rules
            ],
            overrides=[
                Override(
                    scope=Scope(row.business_id, row.staff_member_id),
                    date=row.override_date,
                    closed=not row.is_available,
                    window=(
                        TimeInterval.parse(row.start_time, row.end_time)
                        if row.is_available else None
                    ),
                )
                for row in dataset.special_availability
            ],
            bookings=[_booking_from_row(row, services.get(row.service_id)) for row in dataset.bookings],
        )

    async def get_business(self, business_id: int) -> Business | None:
        return self.businesses.get(business_id)

    async def get_service(self, service_id: int, business_id: int) -> Service | None:
        service = self.services.get(service_id)
        if service is None or service.business_id != business_id:
            return None
        return service

    async def get_working_hours(self, scope: Scope, day_of_week: int) -> List[TimeInterval]:
        windows = [
            rule.window for rule in self.rules
            if rule.active and rule.scope == scope and rule.day_of_week == day_of_week
        ]
        return sorted(windows, key=lambda window: (window.start, window.end))

    async def get_override(self, scope: Scope, day: date) -> Override | None:
        return self.overrides.get((scope, day))

    async def list_eligible_staff(
        self,
        business_id: int,
        service_id: int,
        staff_id_filter: int | None = None,
    ) -> List[StaffMember]:
        return [
            member for member in sorted(self.staff.values(), key=lambda m: m.id)
            if member.active
            and member.business_id == business_id
            and member.can_perform(service_id)
            and (staff_id_filter is None or member.id == staff_id_filter)
        ]

    async def list_bookings(
        self,
        business_id: int,
        day: date,
        staff_id_filter: int | None = None,
    ) -> List[ExistingBooking]:
        """Return the bookings that occupy time, i.e. pending or confirmed."""
        return [
            booking for booking in self.bookings
            if booking.business_id == business_id
            and booking.date == day
            and booking.occupies_time
            and (staff_id_filter is None or booking.staff_member_id == staff_id_filter)
        ]


def _booking_from_row(row: BookingRow, service: Service | None) -> ExistingBooking:
    # Buffers belong to the booked service, as with a bookings/services join.
    return ExistingBooking(
        business_id=row.business_id,
        service_id=row.service_id,
        staff_member_id=row.staff_member_id,
        date=row.booking_date,
        interval=TimeInterval.parse(row.start_time, row.end_time),
        party_size=row.party_size,
        status=row.status,
        buffer_before_minutes=service.buffer_before_minutes if service else 0,
        buffer_after_minutes=service.buffer_after_minutes if service else 0,
    )
