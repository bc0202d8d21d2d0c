# modlib/utils/async_utils.py
from typing import Any, Callable

from PyQt6.QtCore import QObject, QRunnable, pyqtSignal

from modlib.utils.logger_utils import logger


class WorkerSignals(QObject):
    """
    finished: emitted last, whatever the outcome
    error: message of the exception that ended the job
    result: the job's return value
    progress: (downloaded, total) byte counts, total is 0 when unknown
    """

    finished = pyqtSignal()
    error = pyqtSignal(str)
    result = pyqtSignal(object)
    progress = pyqtSignal(int, int)


class ProgressRelay:
    """
    Handed to a job as its `progress_callback`. Forwards (downloaded, total)
    reports to a signal and drops any that would move the count backwards.
    """

    def __init__(self, signal):
        self.signal = signal
        self.downloaded = 0

    def emit(self, downloaded: int, total: int):
        if downloaded < self.downloaded:
            return
        self.downloaded = downloaded
        self.signal.emit(downloaded, max(total, 0))


class Worker(QRunnable):
    """Runs one job on a thread pool and reports back through WorkerSignals."""

    def __init__(self, fn: Callable, *args: Any, with_progress: bool = False, **kwargs: Any):
        super().__init__()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = WorkerSignals()
        if with_progress:
            self.kwargs["progress_callback"] = ProgressRelay(self.signals.progress)

    def run(self):
        try:
            result = self.fn(*self.args, **self.kwargs)
        except Exception as e:
            logger.error(f"Background job '{getattr(self.fn, '__name__', self.fn)}' failed: {e}", exc_info=True)
            self.signals.error.emit(str(e) or type(e).__name__)
        else:
            self.signals.result.emit(result)
        finally:
            self.signals.finished.emit()
