import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

import requests

from ..domain.errors import FetchError, SchemaError
from ..sources import file_source
from . import UTC

CSV_TEXT = "Start Time,End Time,Activity Type,Application\n1700000000,1700000600,Application,Editor\n"


class TestFileSource(unittest.TestCase):

    def test_read_csv_file(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "activities.csv")
            with open(path, "w", encoding="utf-8") as file:
                file.write(CSV_TEXT)
            batch = file_source.load_csv(path, UTC)
        self.assertEqual(batch.rows_kept, 1)
        self.assertEqual(batch.activities[0].application_name, "Editor")

    def test_read_missing_file(self):
        with self.assertRaises(OSError):
            file_source.read_csv_file("/nonexistent/activities.csv", UTC)

    @patch.object(file_source.requests, "get")
    def test_fetch_csv_url(self, get_mock):
        response = MagicMock(ok=True, status_code=200, content=CSV_TEXT.encode("utf-8"))
        get_mock.return_value = response
        batch = file_source.load_csv("https://example.com/activities.csv", UTC)
        self.assertEqual(batch.rows_kept, 1)
        get_mock.assert_called_once()
        self.assertEqual(get_mock.call_args[0][0], "https://example.com/activities.csv")

    @patch.object(file_source.requests, "get")
    def test_fetch_csv_url_http_error(self, get_mock):
        get_mock.return_value = MagicMock(ok=False, status_code=404, reason="Not Found")
        with self.assertRaises(FetchError) as context:
            file_source.fetch_csv_url("https://example.com/missing.csv", UTC)
        self.assertEqual(context.exception.status, 404)

    @patch.object(file_source.requests, "get")
    def test_fetch_csv_url_transport_error(self, get_mock):
        get_mock.side_effect = requests.exceptions.ConnectionError("refused")
        with self.assertRaises(FetchError) as context:
            file_source.fetch_csv_url("https://example.com/activities.csv", UTC)
        self.assertIsNone(context.exception.status)

    @patch.object(file_source.requests, "get")
    def test_fetch_not_a_table(self, get_mock):
        get_mock.return_value = MagicMock(ok=True, status_code=200, content=b"Hello,World\n1,2\n")
        with self.assertRaises(SchemaError):
            file_source.fetch_csv_url("https://example.com/page.html", UTC)

    def test_is_url(self):
        self.assertTrue(file_source.is_url("HTTPS://example.com/a.csv"))
        self.assertFalse(file_source.is_url("/home/user/a.csv"))
