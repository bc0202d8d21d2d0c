# modlib/__init__.py
from modlib.core.constants import APP_VERSION

__version__ = APP_VERSION
