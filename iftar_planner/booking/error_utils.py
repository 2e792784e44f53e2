# Custom exceptions to be used throughout the project.

class BookingValidationError(Exception):
    """
    To be raised when a booking request can't be accepted as submitted.
    May be raised under the following circumstances:
        1. Name or phone left blank
        2. Terms and conditions not accepted
        3. Input exceeds the allowed length or contains disallowed characters
        4. The slot id is malformed or doesn't belong to the calendar
    """
    def __init__(self, message, *args):
        super().__init__(message, *args)
        self.message = message


class OwnershipError(Exception):
    """
    Raised when an actor tries to edit or cancel a booking made by another session without admin override active.
    """
    def __init__(self, slot_id, *args):
        super().__init__(slot_id, *args)
        self.slot_id = slot_id
        self.message = "This slot is already booked. You can contact the sponsor below."


class StoreWriteError(Exception):
    """
    Raised when an upsert or delete against the bookings table fails. Local state is left unchanged and nothing is retried.
    """
    def __init__(self, message, *args):
        super().__init__(message, *args)
        self.message = message


class RelayError(Exception):
    """
    Raised by the notification relay endpoint when the payload is unusable or the mail provider isn't configured.
    """
    def __init__(self, message, *args):
        super().__init__(message, *args)
        self.message = message


class StoreReadError(Exception):
    """
    Raised when a single booking can't be read back from the bookings table. The slot's owner is unknown, so no write may follow.
    """
    def __init__(self, message, *args):
        super().__init__(message, *args)
        self.message = message
