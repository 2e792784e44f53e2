import unittest
import os
import sys
from unittest.mock import patch, MagicMock
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
import psycopg2
from iftar_planner.booking.database import DatabasePersistence, UnconfiguredStore, create_store
from iftar_planner.booking.error_utils import StoreReadError

DATABASE_URL = 'postgresql://localhost/iftar_test'


class DatabasePersistenceTest(unittest.TestCase):

    def setUp(self):
        DatabasePersistence._prepared_urls.clear()

    @patch('iftar_planner.booking.database.psycopg2.connect')
    def test_schema_checked_once_per_database(self, mock_connect):
        mock_connect.return_value = MagicMock()
        DatabasePersistence(DATABASE_URL)
        DatabasePersistence(DATABASE_URL)
        self.assertEqual(mock_connect.call_count, 1)

    @patch('iftar_planner.booking.database.psycopg2.connect')
    def test_failed_lookup_raises(self, mock_connect):
        mock_connect.return_value = MagicMock()
        store = DatabasePersistence(DATABASE_URL)
        mock_connect.side_effect = psycopg2.OperationalError("connection refused")
        with self.assertLogs('iftar_planner.booking.database', level='ERROR'):
            with self.assertRaises(StoreReadError):
                store.retrieve_booking("2026-02-22")

    @patch('iftar_planner.booking.database.psycopg2.connect')
    def test_failed_listing_reads_as_empty(self, mock_connect):
        mock_connect.return_value = MagicMock()
        store = DatabasePersistence(DATABASE_URL)
        mock_connect.side_effect = psycopg2.OperationalError("connection refused")
        self.assertEqual(store.retrieve_bookings(), [])

    @patch('iftar_planner.booking.database.psycopg2.connect')
    def test_unreachable_database_degrades(self, mock_connect):
        mock_connect.side_effect = psycopg2.OperationalError("connection refused")
        self.assertIsInstance(create_store({'DATABASE_URL': DATABASE_URL}), UnconfiguredStore)
        self.assertNotIn(DATABASE_URL, DatabasePersistence._prepared_urls)

    def test_missing_url_degrades(self):
        self.assertIsInstance(create_store({}), UnconfiguredStore)


if __name__ == '__main__':
    unittest.main()
