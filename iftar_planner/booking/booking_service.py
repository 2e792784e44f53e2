"""
Booking lifecycle: confirm and cancel sponsorships against the bookings table.

Every successful write is followed by a full re-read of the table, and then a notification email goes out in the background.
Nothing is retried. A failed write raises StoreWriteError and leaves the table and the calendar as they were.
"""
from dataclasses import dataclass
from datetime import date
import logging
from typing import Optional

from .booking_utils import BookingForm, display_date
from .error_utils import BookingValidationError, StoreReadError, StoreWriteError
from .ownership import ActorContext, ensure_can_modify
from .slots import (Booking, Calendar, DEFAULT_DUAL_DAY, DUAL_DAY_ATTENDANCE, WEEKDAY_ATTENDANCE,
                    WEEKEND_ATTENDANCE, SlotBinding, build_calendar, index_bookings)

logger = logging.getLogger(__name__)

SUBJECT_PREFIX = "[Iftar Planner]"
NO_CHANGES_NOTE = "(No details were changed, only confirmed)"


@dataclass(frozen=True)
class CalendarSettings:
    start_date: date
    total_days: int = 30
    dual_day: int = DEFAULT_DUAL_DAY
    weekday_attendance: int = WEEKDAY_ATTENDANCE
    weekend_attendance: int = WEEKEND_ATTENDANCE
    dual_day_attendance: int = DUAL_DAY_ATTENDANCE


@dataclass(frozen=True)
class Notification:
    subject: str
    body: str


def describe_changes(old: Booking, form: BookingForm) -> str:
    """Lists each changed field as '- Field: "old" -> "new"'. Notes a plain re-confirmation when nothing changed."""
    changes = []
    if old.name != form.name:
        changes.append(f'- Name: "{old.name}" -> "{form.name}"')
    if old.phone != form.phone:
        changes.append(f'- Phone: "{old.phone}" -> "{form.phone}"')
    if old.food_details != form.food_details:
        changes.append(f'- Details: "{old.food_details}" -> "{form.food_details}"')
    if changes:
        return "CHANGES MADE:\n" + "\n".join(changes)
    return NO_CHANGES_NOTE


def confirmation_notice(binding: SlotBinding, form: BookingForm, previous: Optional[Booking]) -> Notification:
    action = "UPDATED" if previous else "NEW"
    date_str = display_date(binding.day_date)
    meal = binding.kind.meal
    subject = f"{SUBJECT_PREFIX} Booking {action}: {date_str} ({meal})"
    body = (f"Booking Details:\n\nDate: {date_str}\nType: {meal}\nName: {form.name}\n"
            f"Phone: {form.phone}\nDetails: {form.food_details}")
    if previous:
        body += f"\n\n{describe_changes(previous, form)}"
    body += "\n\nProcessed via EEIS Planner."
    return Notification(subject, body)


def cancellation_notice(slot_id: str, snapshot: Optional[Booking]) -> Notification:
    subject = f"{SUBJECT_PREFIX} Booking CANCELLED: {slot_id}"
    body = "The following booking has been cancelled completely."
    # The row is gone, so the snapshot is the only record of who had the slot
    if snapshot:
        body += (f"\n\nCANCELLED BOOKING DETAILS:\nName: {snapshot.name}\nPhone: {snapshot.phone}\n"
                 f"Food: {snapshot.food_details}")
    body += f"\n\nSlot ID: {slot_id}"
    return Notification(subject, body)


class BookingLifecycle:

    def __init__(self, store, notifier, settings: CalendarSettings):
        self._store = store
        self._notifier = notifier
        self._settings = settings

    def load_calendar(self) -> Calendar:
        """Re-reads every booking and rebuilds the calendar from scratch."""
        bookings = index_bookings(self._store.retrieve_bookings())
        settings = self._settings
        return build_calendar(settings.start_date, settings.total_days, bookings,
                              dual_day=settings.dual_day,
                              weekday_attendance=settings.weekday_attendance,
                              weekend_attendance=settings.weekend_attendance,
                              dual_day_attendance=settings.dual_day_attendance)

    def confirm(self, slot_id: str, form: BookingForm, actor: ActorContext) -> Calendar:
        """
        Creates or updates the booking for a slot.

        Input: slot id, validated form, acting session.
        Returns: the re-hydrated calendar.

        Raises BookingValidationError for unknown slots, OwnershipError if the slot belongs to another session and the actor isn't admin,
        and StoreWriteError if the current booking can't be read or the upsert fails.
        """
        _, binding = self.load_calendar().find_slot(slot_id)
        slot_id = binding.slot_id
        previous = self._current_booking(slot_id)
        ensure_can_modify(actor, previous)

        if not self._store.is_configured:
            logger.warning(f"Booking store unavailable. Confirm for {slot_id} not persisted.")
            return self.load_calendar()

        booking = Booking(slot_id, form.name, form.phone, form.food_details, actor.session_id)
        if not self._store.upsert_booking(booking):
            raise StoreWriteError("Update failed. Please try again.")
        logger.info(f"Booking {'updated' if previous else 'created'} for slot {slot_id}")

        calendar = self.load_calendar()
        self._notify(confirmation_notice(binding, form, previous))
        return calendar

    def cancel(self, slot_id: str, actor: ActorContext) -> Calendar:
        """
        Deletes the booking for a slot after checking ownership against the row as it stands before deletion.

        Raises BookingValidationError for unknown or free slots, OwnershipError or StoreWriteError. The calendar is only re-read if the delete succeeded.
        """
        self.load_calendar().find_slot(slot_id)
        snapshot = self._current_booking(slot_id)
        if snapshot is None:
            raise BookingValidationError("This slot is not booked.")
        ensure_can_modify(actor, snapshot)

        if not self._store.delete_booking(slot_id):
            raise StoreWriteError(f"Delete failed: could not remove booking {slot_id}")
        logger.info(f"Booking cancelled for slot {slot_id}")

        calendar = self.load_calendar()
        self._notify(cancellation_notice(slot_id, snapshot))
        return calendar

    def _current_booking(self, slot_id: str) -> Optional[Booking]:
        try:
            return self._store.retrieve_booking(slot_id)
        except StoreReadError as e:
            # Owner unknown: refuse rather than treat the slot as free
            raise StoreWriteError("Update failed. Please try again.") from e

    def _notify(self, notification: Notification):
        # Runs in the background; the notifier only logs failures
        self._notifier.dispatch(notification.subject, notification.body)
