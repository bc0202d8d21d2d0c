# modlib/core/signals.py
from PyQt6.QtCore import QObject, pyqtSignal


class GlobalSignals(QObject):
    """
    Application-wide signals for deep services that have no reference to a UI.

    Note: Use this sparingly. Results of operations are returned directly to
    the caller; this is only for side-channel notices.
    """

    # Used by deep services (like CatalogService) to request a UI toast.
    # Emits: message (str), level (str, e.g., 'info', 'warning', 'error')
    toast_requested = pyqtSignal(str, str)

    # Emitted after an operation changed folders under a library root.
    # Emits: library root (str)
    library_changed = pyqtSignal(str)


# Create a single, global instance that can be imported anywhere
global_signals = GlobalSignals()
