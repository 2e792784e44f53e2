import unittest
import os
import sys
from datetime import date, timedelta
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from iftar_planner.booking.error_utils import BookingValidationError
from iftar_planner.booking.slots import (Booking, SlotKind, build_calendar, index_bookings, parse_slot_id,
                                         slot_id)

# Wednesday
START = date(2026, 2, 18)


class SlotModelTest(unittest.TestCase):

    def test_dates_and_weekends_follow_start_date(self):
        calendar = build_calendar(START, 30, {})
        self.assertEqual(len(calendar.days), 30)
        for day in calendar.days:
            self.assertEqual(day.date, START + timedelta(days=day.day_number - 1))
            self.assertEqual(day.is_weekend, day.date.weekday() in (5, 6))
        self.assertEqual(calendar.days[0].day_number, 1)
        self.assertTrue(calendar.days[3].is_weekend)  # Saturday 21 February
        self.assertFalse(calendar.days[0].is_weekend)

    def test_dual_day_has_iftar_and_suhoor_only(self):
        calendar = build_calendar(START, 30, {}, dual_day=27)
        for day in calendar.days:
            if day.day_number == 27:
                self.assertEqual(set(day.slots), {SlotKind.IFTAR, SlotKind.SUHOOR})
                self.assertTrue(day.is_dual_day)
            else:
                self.assertEqual(set(day.slots), {SlotKind.PRIMARY})
                self.assertFalse(day.is_dual_day)

    def test_expected_attendance(self):
        calendar = build_calendar(START, 30, {})
        self.assertEqual(calendar.days[0].expected_attendance, 25)   # Wednesday
        self.assertEqual(calendar.days[4].expected_attendance, 75)   # Sunday
        self.assertEqual(calendar.days[26].expected_attendance, 75)  # dual day, a Monday

    def test_slot_ids(self):
        self.assertEqual(slot_id(date(2026, 2, 22), SlotKind.PRIMARY), "2026-02-22")
        self.assertEqual(slot_id(date(2026, 3, 16), SlotKind.SUHOOR), "2026-03-16_suhoor")
        self.assertEqual(parse_slot_id("2026-03-16_iftar"), (date(2026, 3, 16), SlotKind.IFTAR))
        self.assertEqual(parse_slot_id("2026-02-22"), (date(2026, 2, 22), SlotKind.PRIMARY))

    def test_malformed_slot_ids_rejected(self):
        for raw in ("not-a-date", "2026-02-22_lunch", "2026-02-22_primary", ""):
            with self.assertRaises(BookingValidationError):
                parse_slot_id(raw)

    def test_bookings_bound_by_id(self):
        bookings = index_bookings([
            Booking("2026-02-22", "Ahmed", "07123456789", "Biryani", "abc"),
            Booking("2026-03-16_suhoor", "Fatima", "02012345678", "Dates", "def"),
        ])
        calendar = build_calendar(START, 30, bookings)
        self.assertEqual(calendar.days[4].slots[SlotKind.PRIMARY].booking.name, "Ahmed")
        self.assertEqual(calendar.days[26].slots[SlotKind.SUHOOR].booking.name, "Fatima")
        self.assertIsNone(calendar.days[26].slots[SlotKind.IFTAR].booking)
        self.assertFalse(calendar.days[26].all_booked)

    def test_slot_counts(self):
        calendar = build_calendar(START, 30, {})
        self.assertEqual(calendar.total_slots, 31)
        self.assertEqual(calendar.booked_count, 0)
        self.assertEqual(calendar.percent_booked, 0)

        bookings = index_bookings([
            Booking("2026-02-22", "Ahmed", "07123456789", "Biryani", "abc"),
            Booking("2026-03-16_suhoor", "Fatima", "02012345678", "Dates", "def"),
        ])
        calendar = build_calendar(START, 30, bookings)
        self.assertEqual(calendar.booked_count, 2)
        self.assertEqual(calendar.percent_booked, 6)

    def test_rows_outside_calendar_are_ignored(self):
        bookings = index_bookings([Booking("2025-01-01", "Old", "07123456789", "Soup", "abc")])
        self.assertEqual(build_calendar(START, 30, bookings).booked_count, 0)

    def test_find_slot(self):
        calendar = build_calendar(START, 30, {})
        day, binding = calendar.find_slot("2026-03-16_iftar")
        self.assertEqual(day.day_number, 27)
        self.assertEqual(binding.slot_id, "2026-03-16_iftar")
        # Primary slot doesn't exist on the dual day
        with self.assertRaises(BookingValidationError):
            calendar.find_slot("2026-03-16")
        # Suhoor only exists on the dual day
        with self.assertRaises(BookingValidationError):
            calendar.find_slot("2026-02-22_suhoor")
        with self.assertRaises(BookingValidationError):
            calendar.find_slot("2026-05-01")

    def test_booking_row_mapping(self):
        row = {"id": "2026-03-16_iftar", "name": "Ahmed", "phone": "07123456789",
               "food_details": "Biryani", "session_id": "abc"}
        booking = Booking.from_row(row)
        self.assertEqual(booking.kind, SlotKind.IFTAR)
        self.assertEqual(booking.date, date(2026, 3, 16))
        self.assertEqual(booking.to_row(), row)
        self.assertNotIn("session_id", booking.to_dict())

    def test_last_ten_nights(self):
        calendar = build_calendar(START, 30, {})
        self.assertFalse(calendar.days[19].is_last_ten)
        self.assertTrue(calendar.days[20].is_last_ten)


if __name__ == '__main__':
    unittest.main()
