# modlib/utils/__init__.py
from .image_utils import ImageUtils
from .system_utils import SystemUtils

__all__ = ["ImageUtils", "SystemUtils"]
