"""
Application service computing the bookable slots of one business day.

The calculator reads configuration and bookings through a data gateway and
delegates the interval work to the domain layer (``generate_slots`` and
``ConflictFilter``). The gateway dependency is a simple protocol so the
in-memory adapter, a database adapter or a test stub can be plugged in.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Protocol, Sequence

from ..domain import calendar
from ..domain.conflict_filter import ConflictFilter
from ..domain.exceptions import (
    GatewayFailure,
    InvalidInput,
    NotFound,
    RequestCancelled,
)
from ..domain.models import (
    AvailabilityResult,
    Business,
    BusinessType,
    ExistingBooking,
    Override,
    Scope,
    Service,
    StaffMember,
    TimeSlot,
)
from ..domain.slot_generator import DEFAULT_STRIDE_MINUTES, generate_slots
from ..domain.time_arithmetic import TimeInterval

logger = logging.getLogger(__name__)

TraceHook = Callable[[str, Dict[str, Any]], None]


class DataGatewayProtocol(Protocol):
    """Read-only access to business configuration and bookings."""

    async def get_business(self, business_id: int) -> Business | None:
        """Return the business, or None if it does not exist."""

    async def get_service(self, service_id: int, business_id: int) -> Service | None:
        """Return the service if it belongs to the business."""

    async def get_working_hours(self, scope: Scope, day_of_week: int) -> List[TimeInterval]:
        """Return the active weekly windows of a scope, ordered by start."""

    async def get_override(self, scope: Scope, day: date) -> Override | None:
        """Return the override of a scope for one date, if any."""

    async def list_eligible_staff(
        self,
        business_id: int,
        service_id: int,
        staff_id_filter: int | None = None,
    ) -> List[StaffMember]:
        """Return active staff members able to perform the service."""

    async def list_bookings(
        self,
        business_id: int,
        day: date,
        staff_id_filter: int | None = None,
    ) -> List[ExistingBooking]:
        """Return the bookings of a business on one date."""


class GuardedReads:
    """
    Gateway reads for a single request.

    Every read honours the caller's cancellation event and turns unexpected
    adapter errors into ``GatewayFailure``. Reads are never retried.
    """

    def __init__(self, gateway: DataGatewayProtocol, cancel_event: asyncio.Event | None = None):
        self._gateway = gateway
        self._cancel_event = cancel_event

    def raise_if_cancelled(self) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise RequestCancelled("Availability request was cancelled")

    async def read(self, operation: str, *args: Any) -> Any:
        self.raise_if_cancelled()
        method = getattr(self._gateway, operation)

        try:
            if self._cancel_event is None:
                return await method(*args)
            return await self._race_cancellation(method(*args))
        except (NotFound, GatewayFailure, RequestCancelled):
            raise
        except Exception as exc:
            # Includes InvalidInput: stored data that fails validation is a read failure.
            raise GatewayFailure(f"{operation} failed: {exc}") from exc

    async def gather(self, reads: Sequence[Awaitable[Any]]) -> List[Any]:
        """
        Run independent reads concurrently.

        Results keep the order of ``reads``. The first failure cancels the
        reads still pending, waits for them to wind down and is re-raised.
        """
        tasks = [asyncio.ensure_future(read) for read in reads]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _race_cancellation(self, read: Awaitable[Any]) -> Any:
        read_task = asyncio.ensure_future(read)
        cancel_task = asyncio.ensure_future(self._cancel_event.wait())

        try:
            done, _ = await asyncio.wait(
                {read_task, cancel_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            cancel_task.cancel()
            if not read_task.done():
                read_task.cancel()

        if read_task not in done:
            raise RequestCancelled("Availability request was cancelled")
        return read_task.result()


async def effective_windows(reads: GuardedReads, scope: Scope, day: date) -> List[TimeInterval]:
    """
    Resolve the opening windows of a scope on one date.

    No weekly rule means closed. An override either closes the day or
    replaces the weekly hours outright.
    """
    windows = await reads.read("get_working_hours", scope, calendar.day_of_week(day))
    if not windows:
        return []

    override = await reads.read("get_override", scope, day)
    if override is None:
        return list(windows)
    if override.closed:
        return []
    return [override.window]


class CapacityStrategy:
    """
    Shared-resource allocation: concurrent bookings limited by capacity.

    Every generated slot is returned, tagged available or not.
    """

    def __init__(self, conflict_filter: ConflictFilter, stride_minutes: int, trace: TraceHook):
        self._conflict_filter = conflict_filter
        self._stride_minutes = stride_minutes
        self._trace = trace

    async def compute(
        self,
        reads: GuardedReads,
        business: Business,
        service: Service,
        day: date,
    ) -> List[TimeSlot]:
        windows = await effective_windows(reads, Scope(business.id), day)
        if not windows:
            self._trace("capacity.closed", {"business_id": business.id, "date": day.isoformat()})
            return []

        bookings = await reads.read("list_bookings", business.id, day, None)
        reads.raise_if_cancelled()

        candidates = [
            interval
            for window in windows
            for interval in generate_slots(
                window.start, window.end, service.duration_minutes, self._stride_minutes
            )
        ]
        same_service = [
            booking for booking in bookings
            if booking.business_id == business.id
            and booking.service_id == service.id
            and booking.date == day
        ]

        slots = self._conflict_filter.annotate_capacity(candidates, same_service, service.capacity)
        self._trace(
            "capacity.annotated",
            {
                "candidates": len(candidates),
                "bookings": len(same_service),
                "available": sum(1 for slot in slots if slot.available),
            },
        )
        return sorted(slots, key=TimeSlot.sort_key)


class StaffStrategy:
    """
    Personal-calendar allocation: each staff member has their own schedule.

    Slots are sized to duration plus both buffers and only bookable slots are
    returned, ordered by start time and then staff member.
    """

    def __init__(
        self,
        conflict_filter: ConflictFilter,
        stride_minutes: int,
        trace: TraceHook,
        concurrent_reads: bool = True,
    ):
        self._conflict_filter = conflict_filter
        self._stride_minutes = stride_minutes
        self._trace = trace
        self._concurrent_reads = concurrent_reads

    async def compute(
        self,
        reads: GuardedReads,
        business: Business,
        service: Service,
        day: date,
        staff_member_id: int | None = None,
    ) -> List[TimeSlot]:
        staff = await reads.read("list_eligible_staff", business.id, service.id, staff_member_id)
        eligible = sorted({
            member.id for member in staff
            if member.active and (staff_member_id is None or member.id == staff_member_id)
        })
        if not eligible:
            self._trace("staff.none_eligible", {"service_id": service.id, "filter": staff_member_id})
            return []

        windows_by_staff = await self._read_staff_windows(reads, business.id, eligible, day)
        bookings = await reads.read("list_bookings", business.id, day, staff_member_id)
        reads.raise_if_cancelled()

        same_day = [booking for booking in bookings if booking.date == day]
        slot_length = service.occupied_minutes

        slots: List[TimeSlot] = []
        for member_id, windows in zip(eligible, windows_by_staff):
            candidates = self._candidates(member_id, windows, slot_length)
            bookable = self._conflict_filter.remove_staff_conflicts(candidates, same_day)
            self._trace(
                "staff.filtered",
                {"staff_member_id": member_id, "candidates": len(candidates), "bookable": len(bookable)},
            )
            slots.extend(bookable)

        return sorted(slots, key=TimeSlot.sort_key)

    async def _read_staff_windows(
        self,
        reads: GuardedReads,
        business_id: int,
        staff_ids: Sequence[int],
        day: date,
    ) -> List[List[TimeInterval]]:
        scopes = [Scope(business_id, staff_id) for staff_id in staff_ids]

        if self._concurrent_reads:
            return await reads.gather([effective_windows(reads, scope, day) for scope in scopes])

        return [await effective_windows(reads, scope, day) for scope in scopes]

    def _candidates(
        self,
        staff_member_id: int,
        windows: Sequence[TimeInterval],
        slot_length: int,
    ) -> List[TimeSlot]:
        return [
            TimeSlot(interval=interval, staff_member_id=staff_member_id)
            for window in windows
            for interval in generate_slots(window.start, window.end, slot_length, self._stride_minutes)
        ]


class AvailabilityCalculator:
    """
    Orchestrates validation, gateway reads and the two allocation strategies.

    The calculator keeps no state between calls, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        gateway: DataGatewayProtocol,
        conflict_filter: ConflictFilter | None = None,
        *,
        stride_minutes: int = DEFAULT_STRIDE_MINUTES,
        timezone: str = "Europe/Berlin",
        concurrent_staff_reads: bool = True,
        clock: Callable[[], date] | None = None,
        trace: TraceHook | None = None,
    ) -> None:
        if stride_minutes <= 0:
            raise ValueError("stride_minutes must be greater than zero")

        self._gateway = gateway
        self._clock = clock or (lambda: calendar.today(timezone))
        self._trace_hook = trace

        conflict_filter = conflict_filter or ConflictFilter()
        self._capacity_strategy = CapacityStrategy(conflict_filter, stride_minutes, self._trace)
        self._staff_strategy = StaffStrategy(
            conflict_filter,
            stride_minutes,
            self._trace,
            concurrent_reads=concurrent_staff_reads,
        )

    @classmethod
    def from_config(cls, gateway: DataGatewayProtocol, config, trace: TraceHook | None = None):
        """Build a calculator from an ``AppConfig``."""
        return cls(
            gateway,
            ConflictFilter(config.engine.min_conflict_overlap_minutes),
            stride_minutes=config.engine.slot_stride_minutes,
            timezone=config.timezone,
            concurrent_staff_reads=config.engine.concurrent_staff_reads,
            trace=trace,
        )

    async def compute_availability(
        self,
        business_id: int,
        service_id: int,
        day: date | str,
        staff_member_id: int | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> AvailabilityResult:
        """
        Compute the ordered slots for a service on one date.

        Args:
            business_id: Business to look up
            service_id: Service of that business
            day: Date as ``date`` or YYYY-MM-DD string
            staff_member_id: Optional staff member to restrict to
            cancel_event: Set it to abort pending reads

        Returns:
            AvailabilityResult, possibly with an empty slot list

        Raises:
            InvalidInput: Malformed id or date, before any read
            NotFound: Business or service missing or inactive
            GatewayFailure: A read failed
            RequestCancelled: ``cancel_event`` was set before slots were built
        """
        business_id = _require_id(business_id, "businessId")
        service_id = _require_id(service_id, "serviceId")
        if staff_member_id is not None:
            staff_member_id = _require_id(staff_member_id, "staffMemberId")
        day = calendar.parse_calendar_date(day)

        reads = GuardedReads(self._gateway, cancel_event)

        business = await reads.read("get_business", business_id)
        if business is None or not business.active:
            raise NotFound(f"Business {business_id} not found or inactive")

        service = await reads.read("get_service", service_id, business_id)
        if service is None or not service.active:
            raise NotFound(f"Service {service_id} not found or inactive")

        last_bookable = calendar.horizon_end(self._clock(), business.advance_booking_days)
        if day > last_bookable:
            self._trace("horizon.exceeded", {"date": day.isoformat(), "last_bookable": last_bookable.isoformat()})
            return AvailabilityResult(date=day)

        if business.type == BusinessType.CAPACITY:
            slots = await self._capacity_strategy.compute(reads, business, service, day)
        else:
            slots = await self._staff_strategy.compute(reads, business, service, day, staff_member_id)

        logger.debug(
            "Computed %d slot(s) for business %s service %s on %s",
            len(slots), business_id, service_id, day,
        )
        return AvailabilityResult(date=day, slots=slots)

    def _trace(self, event: str, details: Dict[str, Any]) -> None:
        logger.debug("%s %s", event, details)
        if self._trace_hook is not None:
            self._trace_hook(event, details)


def _require_id(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInput(f"Valid {name} required, got {value!r}")
    return value
