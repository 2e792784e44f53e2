import logging
import secrets
from typing import MutableMapping

logger = logging.getLogger(__name__)

SESSION_KEY = 'eeis_user_session'


def get_or_create_session_id(storage: MutableMapping, key: str = SESSION_KEY) -> str:
    """
    Returns the token identifying this browser as the owner of the bookings it creates, generating and storing one on first visit.

    Storage is any mapping persisted on the client side; the Flask app passes its permanent session cookie.
    The token is only compared against booking rows. It is never validated or rotated.
    """
    session_id = storage.get(key)
    if not session_id:
        session_id = secrets.token_hex(8)
        storage[key] = session_id
        logger.info("Issued new booking session id.")
    return session_id
