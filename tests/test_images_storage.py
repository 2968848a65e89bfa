import io
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from PIL import Image as PIL_Image

from classengage.errors import ValidationError
from classengage.services import ImageService
from classengage.storage import InMemoryBlobStorage, LocalBlobStorage
from tests.base import AppTestCase, make_image_bytes


class BlobStorageTests(unittest.TestCase):
    def setUp(self):
        self.root = tempfile.mkdtemp()
        self.storage = LocalBlobStorage(url_prefix="/media", root=self.root)

    def tearDown(self):
        shutil.rmtree(self.root, ignore_errors=True)

    def test_local_round_trip_and_delete(self):
        url = self.storage.save("images/1.webp", b"abc", "image/webp")
        self.assertEqual(url, "/media/images/1.webp")
        self.assertTrue(os.path.exists(os.path.join(self.root, "images", "1.webp")))
        self.assertEqual(self.storage.read("images/1.webp"), b"abc")

        self.storage.delete("images/1.webp")
        with self.assertRaises(FileNotFoundError):
            self.storage.delete("images/1.webp")

    def test_paths_cannot_escape_root(self):
        with self.assertRaises(ValueError):
            self.storage.save("../outside.txt", b"x", "text/plain")

    def test_path_from_url(self):
        storage = InMemoryBlobStorage(url_prefix="/media")
        self.assertEqual(storage.path_from_url("/media/images/My%20Pic.webp?v=2"), "images/My Pic.webp")
        self.assertEqual(
            storage.path_from_url("https://cdn.example.com/media/images/3.webp"), "images/3.webp"
        )
        self.assertIsNone(storage.path_from_url("https://elsewhere.example.com/pic.png"))
        self.assertIsNone(storage.path_from_url(None))

    def test_memory_read_missing(self):
        with self.assertRaises(FileNotFoundError):
            InMemoryBlobStorage().read("nope")


class ImageServiceTests(AppTestCase):
    def test_validate_accepts_supported_formats(self):
        for fmt, mime in (("PNG", "image/png"), ("JPEG", "image/jpeg"), ("GIF", "image/gif")):
            image = ImageService.validate_upload(make_image_bytes(fmt), mime)
            self.assertEqual(image.format, fmt)

    def test_validate_rejects_other_types(self):
        with self.assertRaises(ValidationError):
            ImageService.validate_upload(make_image_bytes("BMP"), "image/bmp")
        with self.assertRaises(ValidationError):
            ImageService.validate_upload(make_image_bytes("BMP"))
        with self.assertRaises(ValidationError):
            ImageService.validate_upload(b"not an image", "image/png")

    def test_validate_rejects_large_files(self):
        with self.assertRaises(ValidationError) as ctx:
            ImageService.validate_upload(b"0" * (10 * 1024 * 1024 + 1), "image/png")
        self.assertEqual(ctx.exception.message, "File size cannot exceed 10MB.")

    def test_validate_rejects_oversized_dimensions(self):
        buf = io.BytesIO()
        PIL_Image.new("1", (400, 400)).save(buf, "PNG")
        with patch.object(PIL_Image, "MAX_IMAGE_PIXELS", 1000):
            with self.assertRaises(ValidationError) as ctx:
                ImageService.validate_upload(buf.getvalue(), "image/png")
        self.assertEqual(ctx.exception.message, "Image dimensions are too large.")

    def test_to_webp_crops_and_shrinks(self):
        image = ImageService.validate_upload(make_image_bytes(size=(1200, 800)), "image/png")
        webp = ImageService.to_webp(image, crop=(100, 0, 800, 800))
        out = PIL_Image.open(io.BytesIO(webp))
        self.assertEqual(out.format, "WEBP")
        self.assertEqual(out.size, (512, 512))

    def test_parse_crop(self):
        self.assertIsNone(ImageService.parse_crop({}))
        self.assertEqual(
            ImageService.parse_crop({"crop_x": "1.5", "crop_y": "2", "crop_width": "30", "crop_height": "40"}),
            (1, 2, 30, 40),
        )
        with self.assertRaises(ValidationError):
            ImageService.parse_crop({"crop_x": "0", "crop_y": "0", "crop_width": "0", "crop_height": "5"})

    def test_decode_data_url(self):
        mime, data = ImageService.decode_data_url("data:image/png;base64,aGVsbG8=")
        self.assertEqual((mime, data), ("image/png", b"hello"))
        with self.assertRaises(ValidationError):
            ImageService.decode_data_url("not a data url")


if __name__ == "__main__":
    unittest.main()
