# modlib/utils/image_utils.py
import base64
import binascii
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from modlib.core.constants import THUMBNAIL_MAX_SIZE
from modlib.core.exceptions import InvalidImage, LibraryIOError
from modlib.utils.logger_utils import logger


class ImageUtils:
    """A collection of static utility functions for image processing."""

    @staticmethod
    def decode_base64_image(data: str) -> Image.Image:
        """
        Decodes base64 image data, with or without a 'data:image/...;base64,' header.
        """
        if data.startswith("data:"):
            _, _, data = data.partition(",")
        try:
            raw = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidImage(f"Thumbnail data is not valid base64: {e}") from e
        return ImageUtils.open_image(BytesIO(raw))

    @staticmethod
    def open_image(source) -> Image.Image:
        """Opens a path or binary stream with Pillow and fully loads it."""
        try:
            img = Image.open(source)
            img.load()
            return img
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidImage(f"Could not read image: {e}") from e

    @staticmethod
    def save_thumbnail(
        source_image: Image.Image,
        target_path: Path,
        max_size: tuple[int, int] = THUMBNAIL_MAX_SIZE,
    ):
        """
        Resizes an image if it's too large and saves it as PNG, keeping transparency.
        """
        try:
            img = source_image.copy()
            img.thumbnail(max_size, Image.Resampling.LANCZOS)

            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA")

            img.save(target_path, "PNG")
            logger.info(f"Saved thumbnail to '{target_path}'")

        except OSError as e:
            logger.error(f"Could not save image to {target_path}: {e}")
            raise LibraryIOError(f"Failed to save thumbnail: {e}") from e
