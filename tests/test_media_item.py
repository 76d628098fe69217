#!/usr/bin/env python3

import unittest
from datetime import datetime, timedelta, timezone

from photos_backup_cli.models.media_item import (
    LocalLibraryItem,
    RemoteItem,
    parse_rfc3339,
)

API_ITEM = {
    "baseUrl": "https://lh3.googleusercontent.com/1234",
    "id": "1234",
    "mediaMetadata": {
        "creationTime": "2019-10-13T17:33:43Z",
        "height": "3024",
        "photo": {
            "apertureFNumber": 1.7,
            "cameraMake": "motorola",
            "cameraModel": "Moto G (5) Plus",
            "focalLength": 4.28,
            "isoEquivalent": 400,
        },
        "width": "4032",
    },
    "mimeType": "image/jpeg",
    "productUrl": "https://photos.google.com/1234",
    "filename": "IMG_1234.jpg",
}


class TestRemoteItem(unittest.TestCase):
    """Test cases for parsing listing results."""

    def test_when_parsing_api_json_then_maps_filename(self):
        """Should read the API's 'filename' field into the item."""
        item = RemoteItem.model_validate(API_ITEM)
        self.assertEqual(item.filename, "IMG_1234.jpg")
        self.assertEqual(item.base_url, "https://lh3.googleusercontent.com/1234")

    def test_when_dimensions_are_strings_then_parses_integers(self):
        item = RemoteItem.model_validate(API_ITEM)
        self.assertEqual(item.media_metadata.width, 4032)
        self.assertEqual(item.media_metadata.height, 3024)

    def test_when_serialized_then_keeps_photo_details(self):
        """Should carry fields it does not model through to the sidecar."""
        document = RemoteItem.model_validate(API_ITEM).to_api_dict()
        self.assertEqual(document["mediaMetadata"]["photo"]["cameraMake"], "motorola")
        self.assertEqual(document["productUrl"], "https://photos.google.com/1234")

    def test_when_mime_type_is_video_then_is_video(self):
        item = RemoteItem.model_validate({**API_ITEM, "mimeType": "Video/MP4"})
        self.assertTrue(item.is_video)

    def test_when_metadata_missing_then_created_at_is_none(self):
        item = RemoteItem.model_validate({"id": "1234"})
        self.assertIsNone(item.created_at)


class TestLocalLibraryItem(unittest.TestCase):
    """Test cases for the flattened sidecar document."""

    def test_when_empty_item_then_document_has_used_file_name(self):
        item = LocalLibraryItem(RemoteItem(id=""), "test.jpg")
        document = item.to_dict()
        self.assertEqual(document["UsedFileName"], "test.jpg")

    def test_when_round_tripped_then_items_are_equal(self):
        item = LocalLibraryItem(RemoteItem.model_validate(API_ITEM), "IMG_1234.jpg")
        self.assertEqual(LocalLibraryItem.from_json(item.to_json()), item)

    def test_when_used_file_name_missing_then_defaults_to_empty(self):
        item = LocalLibraryItem.from_dict(dict(API_ITEM))
        self.assertEqual(item.used_file_name, "")

    def test_when_document_has_no_id_then_raises(self):
        with self.assertRaises(ValueError):
            LocalLibraryItem.from_dict({"UsedFileName": "x.jpg"})


class TestParseRfc3339(unittest.TestCase):
    def test_when_zulu_time_then_returns_utc(self):
        self.assertEqual(
            parse_rfc3339("2019-10-13T17:33:43Z"),
            datetime(2019, 10, 13, 17, 33, 43, tzinfo=timezone.utc),
        )

    def test_when_offset_given_then_keeps_offset(self):
        parsed = parse_rfc3339("2019-10-13T23:10:00+02:00")
        self.assertEqual(parsed.utcoffset(), timedelta(hours=2))
        self.assertEqual(parsed.day, 13)

    def test_when_invalid_or_missing_then_returns_none(self):
        for value in (None, "", "not a date", "2019-10-13T17:33:43"):
            with self.subTest(value=value):
                self.assertIsNone(parse_rfc3339(value))


if __name__ == "__main__":
    unittest.main()
