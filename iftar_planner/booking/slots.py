"""
Slot model for the Ramadan catering calendar.

Every day of the month has one catering slot, except the designated dual day (27th night) which has two independent slots: iftar and suhoor.
Slots are never stored. They are derived from the start date and day count, and matched against booking rows by id.

Slot id format:
    single-slot day: "YYYY-MM-DD"
    dual day:        "YYYY-MM-DD_iftar" / "YYYY-MM-DD_suhoor"
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .error_utils import BookingValidationError

DEFAULT_DUAL_DAY = 27
WEEKDAY_ATTENDANCE = 25
WEEKEND_ATTENDANCE = 75
DUAL_DAY_ATTENDANCE = 75
LAST_TEN_NIGHTS_START = 21

# Saturday and Sunday per date.weekday()
WEEKEND_DAYS = {5, 6}


class SlotKind(str, Enum):
    PRIMARY = "primary"
    IFTAR = "iftar"
    SUHOOR = "suhoor"

    @property
    def meal(self) -> str:
        """The meal being catered. A primary slot is an iftar."""
        return SlotKind.IFTAR.value if self is SlotKind.PRIMARY else self.value


DUAL_DAY_KINDS = (SlotKind.IFTAR, SlotKind.SUHOOR)


def slot_id(day_date: date, kind: SlotKind) -> str:
    iso_date = day_date.isoformat()
    if kind is SlotKind.PRIMARY:
        return iso_date
    return f"{iso_date}_{kind.value}"


def parse_slot_id(raw_id: str) -> Tuple[date, SlotKind]:
    """
    Splits a slot id back into its date and kind.

    Raises BookingValidationError if the id doesn't follow either id format.
    """
    date_part, _, kind_part = raw_id.partition("_")
    try:
        day_date = date.fromisoformat(date_part)
    except ValueError:
        raise BookingValidationError(f"Unknown slot: {raw_id}")
    if not kind_part:
        return day_date, SlotKind.PRIMARY
    try:
        kind = SlotKind(kind_part)
    except ValueError:
        raise BookingValidationError(f"Unknown slot: {raw_id}")
    if kind is SlotKind.PRIMARY:
        # primary slots never carry a suffix
        raise BookingValidationError(f"Unknown slot: {raw_id}")
    return day_date, kind


@dataclass(frozen=True)
class Booking:
    id: str
    name: str
    phone: str
    food_details: str
    session_id: Optional[str] = None

    @property
    def date(self) -> date:
        return parse_slot_id(self.id)[0]

    @property
    def kind(self) -> SlotKind:
        return parse_slot_id(self.id)[1]

    @classmethod
    def from_row(cls, row) -> "Booking":
        """Builds a booking from a bookings table row (any mapping with the column names as keys)."""
        return cls(
            id=row["id"],
            name=row["name"],
            phone=row["phone"],
            food_details=row["food_details"],
            session_id=row["session_id"],
        )

    def to_row(self) -> Dict[str, Optional[str]]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "food_details": self.food_details,
            "session_id": self.session_id,
        }

    def to_dict(self) -> Dict[str, Optional[str]]:
        # Same shape as the row but without the owner token, for the public read API
        data = self.to_row()
        data.pop("session_id")
        return data


@dataclass(frozen=True)
class SlotBinding:
    day_date: date
    kind: SlotKind
    booking: Optional[Booking] = None

    @property
    def slot_id(self) -> str:
        return slot_id(self.day_date, self.kind)

    @property
    def is_booked(self) -> bool:
        return self.booking is not None


@dataclass(frozen=True)
class RamadanDay:
    day_number: int
    date: date
    is_weekend: bool
    expected_attendance: int
    slots: Dict[SlotKind, SlotBinding] = field(default_factory=dict)

    @property
    def is_dual_day(self) -> bool:
        return SlotKind.PRIMARY not in self.slots

    @property
    def is_last_ten(self) -> bool:
        return self.day_number >= LAST_TEN_NIGHTS_START

    @property
    def all_booked(self) -> bool:
        return all(binding.is_booked for binding in self.slots.values())

    @property
    def booked_count(self) -> int:
        return sum(1 for binding in self.slots.values() if binding.is_booked)


@dataclass(frozen=True)
class Calendar:
    days: List[RamadanDay]

    @property
    def total_slots(self) -> int:
        return sum(len(day.slots) for day in self.days)

    @property
    def booked_count(self) -> int:
        return sum(day.booked_count for day in self.days)

    @property
    def percent_booked(self) -> int:
        if not self.total_slots:
            return 0
        return round(self.booked_count / self.total_slots * 100)

    def find_slot(self, raw_id: str) -> Tuple[RamadanDay, SlotBinding]:
        """
        Looks up the day and slot binding for a slot id.

        Raises BookingValidationError when the id is malformed, outside the calendar range, or names a kind the day doesn't have (e.g. a primary slot on the dual day).
        """
        day_date, kind = parse_slot_id(raw_id)
        for day in self.days:
            if day.date == day_date and kind in day.slots:
                return day, day.slots[kind]
        raise BookingValidationError(f"Unknown slot: {raw_id}")

    def to_dict(self) -> dict:
        return {
            "booked_count": self.booked_count,
            "total_slots": self.total_slots,
            "days": [
                {
                    "day_number": day.day_number,
                    "date": day.date.isoformat(),
                    "is_weekend": day.is_weekend,
                    "expected_attendance": day.expected_attendance,
                    "slots": {
                        kind.value: {
                            "id": binding.slot_id,
                            "booking": binding.booking.to_dict() if binding.booking else None,
                        }
                        for kind, binding in day.slots.items()
                    },
                }
                for day in self.days
            ],
        }


def index_bookings(bookings: Iterable[Booking]) -> Dict[str, Booking]:
    return {booking.id: booking for booking in bookings}


def build_calendar(start: date, total_days: int, bookings: Dict[str, Booking], dual_day: int = DEFAULT_DUAL_DAY,
                   weekday_attendance: int = WEEKDAY_ATTENDANCE, weekend_attendance: int = WEEKEND_ATTENDANCE,
                   dual_day_attendance: int = DUAL_DAY_ATTENDANCE) -> Calendar:
    """
    Derives the full calendar from the start date, the day count and the booking rows keyed by slot id.

    Input: start date of the month, number of days, bookings keyed by id.
    Returns: Calendar with one RamadanDay per day number (1-indexed).

    Pure function. Callers rebuild the whole calendar after every write instead of patching it.
    """
    days = []
    for day_number in range(1, total_days + 1):
        day_date = start + timedelta(days=day_number - 1)
        is_weekend = day_date.weekday() in WEEKEND_DAYS
        if day_number == dual_day:
            kinds = DUAL_DAY_KINDS
            attendance = dual_day_attendance
        else:
            kinds = (SlotKind.PRIMARY,)
            attendance = weekend_attendance if is_weekend else weekday_attendance
        slots = {
            kind: SlotBinding(day_date, kind, bookings.get(slot_id(day_date, kind)))
            for kind in kinds
        }
        days.append(RamadanDay(day_number, day_date, is_weekend, attendance, slots))
    return Calendar(days)
