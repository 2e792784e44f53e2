import psycopg2
from psycopg2.extras import DictCursor
from contextlib import contextmanager
import logging
from typing import List, Optional

from .error_utils import StoreReadError
from .slots import Booking

logger = logging.getLogger(__name__)


class DatabasePersistence:
    """
    Store adapter for the bookings table. One row per active booking, keyed by slot id. Presence of a row means the slot is booked.
    """

    is_configured = True
    # Database urls whose schema has already been checked in this process
    _prepared_urls = set()

    def __init__(self, database_url: str):
        self._database_url = database_url
        if database_url not in self._prepared_urls:
            self._setup_schema()
            self._prepared_urls.add(database_url)

    @contextmanager
    def _database_connect(self):
        """
        Internal function to manage the Postgres database connections.
        Commits on a clean exit and rolls back if the block raises.
        """
        connection = psycopg2.connect(self._database_url)
        try:
            with connection:
                yield connection
        finally:
            connection.close()

    def retrieve_bookings(self) -> List[Booking]:
        """
        Gets every booking row.

        A failed read is logged and treated as an empty table so the calendar still renders.
        """
        query = "SELECT id, name, phone, food_details, session_id FROM bookings ORDER BY id"
        logger.info("Executing query: %s", query)
        try:
            with self._database_connect() as conn:
                with conn.cursor(cursor_factory=DictCursor) as cursor:
                    cursor.execute(query)
                    rows = cursor.fetchall()
        except psycopg2.Error as e:
            logger.error(f"Booking retrieval failed: {e.args}")
            return []
        return [Booking.from_row(row) for row in rows]

    def retrieve_booking(self, slot_id: str) -> Optional[Booking]:
        """
        Gets the booking for one slot, or None if the slot is free.

        Raises StoreReadError if the lookup fails.
        """
        query = "SELECT id, name, phone, food_details, session_id FROM bookings WHERE id = %s"
        logger.info("Executing query: %s", query)
        try:
            with self._database_connect() as conn:
                with conn.cursor(cursor_factory=DictCursor) as cursor:
                    cursor.execute(query, (slot_id,))
                    row = cursor.fetchone()
        except psycopg2.Error as e:
            logger.error(f"Booking lookup failed for {slot_id}: {e.args}")
            raise StoreReadError(f"Could not read booking {slot_id}") from e
        return Booking.from_row(row) if row else None

    def upsert_booking(self, booking: Booking) -> bool:
        """
        Inserts the booking, or overwrites the fields of the row with the same id.

        Returns True if the write succeeded, False otherwise.
        """
        query = """INSERT INTO bookings (id, name, phone, food_details, session_id)
                   VALUES (%(id)s, %(name)s, %(phone)s, %(food_details)s, %(session_id)s)
                   ON CONFLICT (id) DO UPDATE SET
                       name = EXCLUDED.name,
                       phone = EXCLUDED.phone,
                       food_details = EXCLUDED.food_details,
                       session_id = EXCLUDED.session_id,
                       updated_at = CURRENT_TIMESTAMP;"""
        logger.info("Executing query: %s", query)
        try:
            with self._database_connect() as conn:
                with conn.cursor() as cursor:
                    cursor.execute(query, booking.to_row())
        except psycopg2.Error as e:
            logger.error(f"Booking upsert failed: {e.args}")
            return False
        return True

    def delete_booking(self, slot_id: str) -> bool:
        query = "DELETE FROM bookings WHERE id = %s"
        logger.info("Executing query: %s", query)
        try:
            with self._database_connect() as conn:
                with conn.cursor() as cursor:
                    cursor.execute(query, (slot_id,))
        except psycopg2.Error as e:
            logger.error(f"Booking deletion failed: {e.args}")
            return False
        return True

    def _setup_schema(self):
        """
        Internal function to set-up the bookings table if it does not exist. Primarily used when being deployed in production.
        """
        with self._database_connect() as conn:
            with conn.cursor() as cursor:
                cursor.execute("""
                    SELECT COUNT(*)
                    FROM information_schema.tables
                    WHERE table_schema = 'public' AND table_name = 'bookings';
                """)
                if cursor.fetchone()[0] == 0:
                    logger.info("Setting up the schema.")
                    cursor.execute("""
                        CREATE TABLE bookings (
                        id text PRIMARY KEY,
                        name text NOT NULL,
                        phone text NOT NULL,
                        food_details text NOT NULL DEFAULT 'To be confirmed',
                        session_id text,
                        created_at timestamp with time zone DEFAULT CURRENT_TIMESTAMP NOT NULL,
                        updated_at timestamp with time zone DEFAULT CURRENT_TIMESTAMP NOT NULL
                        );""")


class UnconfiguredStore:
    """
    Stand-in used when no database is configured or reachable. Every slot reads as free and writes are dropped.
    """

    is_configured = False

    def retrieve_bookings(self) -> List[Booking]:
        return []

    def retrieve_booking(self, slot_id: str) -> Optional[Booking]:
        return None

    def upsert_booking(self, booking: Booking) -> bool:
        logger.warning(f"No booking store configured. Dropping write for {booking.id}")
        return True

    def delete_booking(self, slot_id: str) -> bool:
        logger.warning(f"No booking store configured. Dropping delete for {slot_id}")
        return True


def create_store(config):
    """
    Builds the store adapter from app config. Falls back to UnconfiguredStore if DATABASE_URL is missing or the database can't be reached.
    """
    database_url = config.get('DATABASE_URL')
    if not database_url:
        logger.warning("DATABASE_URL is not set. Running without a booking store.")
        return UnconfiguredStore()
    try:
        return DatabasePersistence(database_url)
    except psycopg2.Error as e:
        logger.error(f"Could not connect to the booking store: {e.args}")
        return UnconfiguredStore()
