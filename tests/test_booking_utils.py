import unittest
import json
import os
import sys
import tempfile
from datetime import date
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from iftar_planner.booking import booking_utils as util
from iftar_planner.booking.error_utils import BookingValidationError, RelayError


class PhoneFormattingTest(unittest.TestCase):

    def test_uk_mobile_grouping(self):
        self.assertEqual(util.format_phone_number("07123456789"), "07123 456 789")
        self.assertEqual(util.format_phone_number("07123-456 789"), "07123 456 789")

    def test_london_landline_grouping(self):
        self.assertEqual(util.format_phone_number("02012345678"), "020 1234 5678")
        self.assertEqual(util.format_phone_number("(020) 1234 5678"), "020 1234 5678")

    def test_partial_input_left_alone(self):
        self.assertEqual(util.format_phone_number("0712"), "0712")
        self.assertEqual(util.format_phone_number(""), "")

    def test_long_numbers_use_generic_grouping(self):
        self.assertEqual(util.format_phone_number("441234567890"), "44123 456 7890")
        self.assertEqual(util.format_phone_number("07123456789012"), "07123 456 789012")

    def test_formatting_is_deterministic(self):
        self.assertEqual(util.format_phone_number("07123456789"), util.format_phone_number("07123456789"))

    def test_contact_links(self):
        self.assertEqual(util.tel_link("07123 456 789"), "tel:07123456789")
        self.assertEqual(util.whatsapp_link("07123 456 789", "Salaam Ahmed"),
                         "https://wa.me/447123456789?text=Salaam%20Ahmed")


class BookingFormTest(unittest.TestCase):

    def test_blank_food_details_get_placeholder(self):
        form = util.validate_booking_form(" Ahmed ", "07123456789", "   ", True)
        self.assertEqual(form, util.BookingForm("Ahmed", "07123456789", "To be confirmed"))

    def test_name_and_phone_required(self):
        with self.assertRaises(BookingValidationError):
            util.validate_booking_form("", "07123456789", "Biryani", True)
        with self.assertRaises(BookingValidationError):
            util.validate_booking_form("Ahmed", " ", "Biryani", True)

    def test_terms_must_be_accepted(self):
        with self.assertRaises(BookingValidationError) as context:
            util.validate_booking_form("Ahmed", "07123456789", "Biryani", False)
        self.assertIn("Iftar rules", context.exception.message)

    def test_phone_characters_checked(self):
        with self.assertRaises(BookingValidationError):
            util.validate_booking_form("Ahmed", "call me maybe", "Biryani", True)
        form = util.validate_booking_form("Ahmed", "+44 (0)7123-456789", "Biryani", True)
        self.assertEqual(form.phone, "+44 (0)7123-456789")

    def test_length_limits(self):
        with self.assertRaises(BookingValidationError):
            util.validate_booking_form("A" * 101, "07123456789", "Biryani", True)
        with self.assertRaises(BookingValidationError):
            util.validate_booking_form("Ahmed", "07123456789", "x" * 1001, True)


class DisplayAndTimetableTest(unittest.TestCase):

    def test_display_date(self):
        self.assertEqual(util.display_date(date(2026, 2, 22)), "22 February")
        self.assertEqual(util.display_date(date(2026, 2, 22), True), "Sunday 22 February")

    def test_suhoor_time(self):
        self.assertEqual(util.calculate_suhoor_time("05:01"), "04:16")
        self.assertEqual(util.calculate_suhoor_time("00:30"), "23:45")
        self.assertEqual(util.calculate_suhoor_time(None), "--:--")
        self.assertEqual(util.calculate_suhoor_time("soon"), "--:--")

    def test_load_prayer_times(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'times.json')
            with open(path, 'w') as file:
                json.dump([{"day": 1, "maghrib": "17:32", "fajr": "05:01"}], file)
            times = util.load_prayer_times(path)
            self.assertEqual(util.slot_time(times, 1, 'iftar'), "17:32")
            self.assertEqual(util.slot_time(times, 1, 'suhoor'), "04:16")
            self.assertEqual(util.slot_time(times, 2, 'iftar'), "--:--")

            with open(path, 'w') as file:
                file.write("{not json")
            self.assertEqual(util.load_prayer_times(path), {})
        self.assertEqual(util.load_prayer_times(None), {})
        self.assertEqual(util.load_prayer_times('/nonexistent/times.json'), {})

    def test_sanitize_recipients(self):
        self.assertEqual(util.sanitize_recipients("madrasah@eeis.co.uk"), ["madrasah@eeis.co.uk"])
        self.assertEqual(util.sanitize_recipients([" madrasah@eeis.co.uk "]), ["madrasah@eeis.co.uk"])
        with self.assertRaises(RelayError):
            util.sanitize_recipients(["not-an-email"])


if __name__ == '__main__':
    unittest.main()
