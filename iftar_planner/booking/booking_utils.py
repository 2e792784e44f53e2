# Utility functions for booking functionality
import json
import logging
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

import phonenumbers
from email_validator import validate_email, EmailNotValidError

from .error_utils import BookingValidationError, RelayError

logger = logging.getLogger(__name__)

FOOD_DETAILS_PLACEHOLDER = "To be confirmed"

MAX_NAME_LENGTH = 100
# Maximum allowed input length to avoid oversized input injections.
MAX_PHONE_LENGTH = 50
MAX_FOOD_DETAILS_LENGTH = 1000

# Allowed characters: an optional leading '+', digits, spaces, hyphens, and parentheses.
ALLOWED_PHONE_PATTERN = re.compile(r'^\+?[0-9\-\(\)\s]+$')

SUHOOR_OFFSET_MINUTES = 45
UNKNOWN_TIME = "--:--"


@dataclass(frozen=True)
class BookingForm:
    name: str
    phone: str
    food_details: str


def validate_booking_form(name: str, phone: str, food_details: str, accepted_terms: bool) -> BookingForm:
    """
    Validates the sponsor form before anything is written.

    Name and phone are required and the terms must be accepted. Food details are optional and fall back to the placeholder.

    Raises BookingValidationError with a user facing message.
    """
    name = (name or '').strip()
    phone = (phone or '').strip()
    food_details = (food_details or '').strip()

    if not name or not phone:
        raise BookingValidationError("Name and phone number are required.")
    if not accepted_terms:
        raise BookingValidationError("Please accept the Iftar rules before booking.")
    if len(name) > MAX_NAME_LENGTH:
        raise BookingValidationError("Name is too long.")
    if len(phone) > MAX_PHONE_LENGTH:
        raise BookingValidationError("Phone number input is too long.")
    if not ALLOWED_PHONE_PATTERN.fullmatch(phone):
        raise BookingValidationError("Phone contains disallowed characters.")
    if len(food_details) > MAX_FOOD_DETAILS_LENGTH:
        raise BookingValidationError(f"Food details are too long. Max {MAX_FOOD_DETAILS_LENGTH} characters.")

    return BookingForm(name, phone, food_details or FOOD_DETAILS_PLACEHOLDER)


def format_phone_number(value: str) -> str:
    """
    Groups the digits of a UK phone number the way people write them down.

    07xxx xxx xxx for mobiles, 020 xxxx xxxx for London landlines, and 5/3/3 chunks for anything else longer than 5 digits.
    Runs on partial input too, so it can be applied while typing.
    """
    cleaned = re.sub(r'\D', '', value or '')

    # UK mobile: 11 digits
    if cleaned.startswith('07') and len(cleaned) <= 11:
        return re.sub(r'(\d{5})(\d{3})(\d{3})', r'\1 \2 \3', cleaned, count=1).strip()

    # UK landline (London): 11 digits
    if cleaned.startswith('02') and len(cleaned) <= 11:
        return re.sub(r'(\d{3})(\d{4})(\d{4})', r'\1 \2 \3', cleaned, count=1).strip()

    if len(cleaned) > 5:
        return re.sub(r'(\d{5})(\d{3})?(\d{3})?',
                      lambda match: ' '.join(group for group in match.groups() if group),
                      cleaned, count=1)

    return cleaned


def tel_link(phone: str) -> str:
    clean_phone = re.sub(r'\s+', '', phone)
    return f"tel:{clean_phone}"


def whatsapp_link(phone: str, text: str) -> str:
    """
    Builds a wa.me chat link. Numbers without a country code are read as UK numbers.
    """
    try:
        parsed_phone = phonenumbers.parse(phone, 'GB')
        digits = phonenumbers.format_number(parsed_phone, phonenumbers.PhoneNumberFormat.E164).lstrip('+')
    except phonenumbers.NumberParseException:
        digits = re.sub(r'^0', '44', re.sub(r'\s+', '', phone))
    return f"https://wa.me/{digits}?text={quote(text)}"


def display_date(day_date: date, with_weekday: bool = False) -> str:
    """Formats a date like '5 March' (or 'Thursday 5 March'), independent of locale."""
    formatted = f"{day_date.day} {day_date.strftime('%B')}"
    if with_weekday:
        return f"{day_date.strftime('%A')} {formatted}"
    return formatted


def sanitize_recipients(recipients) -> list[str]:
    """
    Normalizes the recipient list sent to the relay endpoint.

    Raises RelayError if any address is invalid.
    """
    if isinstance(recipients, str):
        recipients = [recipients]
    normalized = []
    for email in recipients:
        try:
            valid = validate_email(str(email).strip(), check_deliverability=False)
        except EmailNotValidError as e:
            raise RelayError(f"Invalid recipient: {str(e)}")
        normalized.append(valid.normalized)
    return normalized


def calculate_suhoor_time(fajr: Optional[str]) -> str:
    """
    Suhoor is served 45 minutes before Fajr. Wraps past midnight.

    Input: 'HH:MM' fajr time or None
    Returns: 'HH:MM' suhoor time, or '--:--' if fajr is unknown
    """
    if not fajr:
        return UNKNOWN_TIME
    try:
        hours, minutes = (int(part) for part in fajr.split(':'))
    except ValueError:
        return UNKNOWN_TIME
    total_minutes = (hours * 60 + minutes - SUHOOR_OFFSET_MINUTES) % 1440
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def load_prayer_times(path) -> Dict[int, Dict[str, str]]:
    """
    Loads the month's prayer timetable from a JSON list of {"day": 1, "maghrib": "17:32", "fajr": "05:01"} records.

    Returns a dict keyed by day number. A missing or malformed file gives an empty timetable.
    """
    if not path:
        return {}
    try:
        with open(Path(path), 'r') as file:
            data = json.load(file)
    except FileNotFoundError:
        logger.warning(f"Prayer times file not found: {path}")
        return {}
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON format in prayer times file: {path}")
        return {}
    return {int(entry['day']): entry for entry in data if 'day' in entry}


def slot_time(prayer_times: Dict[int, Dict[str, str]], day_number: int, meal: str) -> str:
    """Serving time shown on a slot: maghrib for iftar, fajr minus 45 minutes for suhoor."""
    entry = prayer_times.get(day_number, {})
    if meal == 'suhoor':
        return calculate_suhoor_time(entry.get('fajr'))
    return entry.get('maghrib') or UNKNOWN_TIME
