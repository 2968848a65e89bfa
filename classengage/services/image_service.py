"""
Image Service
Validates uploaded photos and turns them into small WebP badges
"""
from io import BytesIO
import base64
import logging
import re

from flask import current_app
from PIL import Image, UnidentifiedImageError

from classengage.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = ('image/jpeg', 'image/png', 'image/gif', 'image/webp')
PIL_FORMAT_TO_MIME = {
    'JPEG': 'image/jpeg',
    'PNG': 'image/png',
    'GIF': 'image/gif',
    'WEBP': 'image/webp',
}
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

_DATA_URL_RE = re.compile(r'^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.+)$', re.DOTALL)


class ImageService:
    """Upload validation, cropping and re-encoding"""

    @staticmethod
    def decode_data_url(data_url):
        """Split a base64 data URL into (mime type, bytes)"""
        match = _DATA_URL_RE.match(data_url or '')
        if not match:
            raise ValidationError("Please select an image file.")
        try:
            data = base64.b64decode(match.group('data'), validate=True)
        except ValueError:
            raise ValidationError("Could not process the image. Please try again.")
        return match.group('mime'), data

    @staticmethod
    def validate_upload(data, mime_type=None):
        """Check size and type; returns the opened PIL image"""
        if not data:
            raise ValidationError("Please select an image file.")
        if len(data) > MAX_UPLOAD_BYTES:
            raise ValidationError("File size cannot exceed 10MB.")
        if mime_type and mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError("Invalid file type. Please upload a JPG, PNG, GIF or WebP.")

        try:
            image = Image.open(BytesIO(data))
            image.load()
        except Image.DecompressionBombError:
            raise ValidationError("Image dimensions are too large.")
        except (UnidentifiedImageError, OSError):
            raise ValidationError("Invalid file type. Please upload a JPG, PNG, GIF or WebP.")

        if PIL_FORMAT_TO_MIME.get(image.format) not in ALLOWED_MIME_TYPES:
            raise ValidationError("Invalid file type. Please upload a JPG, PNG, GIF or WebP.")
        return image

    @staticmethod
    def parse_crop(values):
        """
        Read an optional crop box from request values

        Returns:
            tuple or None: (x, y, width, height) in source pixels
        """
        keys = ('crop_x', 'crop_y', 'crop_width', 'crop_height')
        if not any(values.get(k) not in (None, '') for k in keys):
            return None
        try:
            x, y, width, height = (int(float(values.get(k))) for k in keys)
        except (TypeError, ValueError):
            raise ValidationError("Invalid crop area.")
        if width <= 0 or height <= 0:
            raise ValidationError("Invalid crop area.")
        return x, y, width, height

    @staticmethod
    def to_webp(image, crop=None, max_dimension=None):
        """
        Crop, shrink to fit max_dimension and encode as WebP

        Areas of the crop box outside the source are padded transparent.
        """
        if max_dimension is None:
            max_dimension = current_app.config.get('IMAGE_MAX_DIMENSION', 512)

        image = image.convert('RGBA')
        if crop:
            x, y, width, height = crop
            image = image.crop((x, y, x + width, y + height))

        image.thumbnail((max_dimension, max_dimension), Image.LANCZOS)

        out = BytesIO()
        image.save(out, format='WEBP', quality=85)
        logger.debug("Encoded WebP %sx%s (%d bytes)", image.width, image.height, out.tell())
        return out.getvalue()
