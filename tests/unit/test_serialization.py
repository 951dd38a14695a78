import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

from django.db.models.fields.files import FieldFile
from django.test import SimpleTestCase

from admin_api.utils.serialization import to_representation


class ToRepresentationTests(SimpleTestCase):
    def test_primitives_pass_through(self):
        for value in (None, True, 3, 2.5, "text"):
            self.assertEqual(to_representation(value), value)

    def test_dates_and_times(self):
        moment = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        self.assertEqual(to_representation(moment), "2024-05-01T12:30:00+00:00")
        self.assertEqual(to_representation(date(2024, 5, 1)), "2024-05-01")
        self.assertEqual(to_representation(time(8, 15)), "08:15:00")

    def test_duration(self):
        self.assertEqual(to_representation(timedelta(hours=1)), "P0DT01H00M00S")

    def test_decimal_and_uuid(self):
        key = uuid.UUID("12345678-1234-5678-1234-567812345678")
        self.assertEqual(to_representation(Decimal("9.90")), "9.90")
        self.assertEqual(to_representation(key), str(key))

    def test_empty_file_is_none(self):
        field_file = MagicMock(spec=FieldFile)
        field_file.__bool__.return_value = False
        self.assertIsNone(to_representation(field_file))

    def test_file_uses_url(self):
        field_file = MagicMock(spec=FieldFile)
        field_file.__bool__.return_value = True
        field_file.url = "/media/covers/a.png"
        self.assertEqual(to_representation(field_file), "/media/covers/a.png")

    def test_nested_containers(self):
        value = {"price": Decimal("1.50"), "days": [date(2024, 1, 2)]}
        self.assertEqual(
            to_representation(value), {"price": "1.50", "days": ["2024-01-02"]}
        )

