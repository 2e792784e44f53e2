"""
Ownership rules for bookings and the admin override toggle.

A booking can be edited or cancelled by the session that made it, or by anyone with admin override active.
These checks only run inside this app; the bookings table itself accepts writes from any client holding the connection details.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from werkzeug.security import check_password_hash

from .error_utils import OwnershipError
from .slots import Booking


@dataclass(frozen=True)
class ActorContext:
    session_id: str
    is_admin: bool = False


def can_modify(actor: ActorContext, booking: Optional[Booking]) -> bool:
    # A free slot has no owner to protect
    if booking is None:
        return True
    return actor.is_admin or booking.session_id == actor.session_id


def ensure_can_modify(actor: ActorContext, booking: Optional[Booking]) -> None:
    if not can_modify(actor, booking):
        raise OwnershipError(booking.id)


class ToggleResult(Enum):
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"
    REJECTED = "rejected"
    UNCHANGED = "unchanged"


# Flash messages shown for each toggle outcome
TOGGLE_MESSAGES = {
    ToggleResult.ACTIVATED: ("Admin Mode Enabled - You can now edit and delete any booking.", "success"),
    ToggleResult.DEACTIVATED: ("Logged out of Admin.", "success"),
    ToggleResult.REJECTED: ("Incorrect Password", "error"),
}


class AdminOverride:
    """
    Shared-secret gate that waives ownership checks. Not a security boundary: the secret is shared between volunteers.
    """

    def __init__(self, password_hash: str, active: bool = False):
        self._password_hash = password_hash
        self.active = active

    def toggle(self, password: Optional[str] = None, confirm: bool = False) -> ToggleResult:
        """
        Switches admin mode.

        When active, only deactivates if the user confirmed the logout.
        When inactive, activates if the password matches. An empty password is treated as a dismissed prompt.
        """
        if self.active:
            if not confirm:
                return ToggleResult.UNCHANGED
            self.active = False
            return ToggleResult.DEACTIVATED
        if not password:
            return ToggleResult.UNCHANGED
        if check_password_hash(self._password_hash, password):
            self.active = True
            return ToggleResult.ACTIVATED
        return ToggleResult.REJECTED
