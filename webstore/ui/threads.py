from typing import Any, Callable, Optional

from PySide6.QtCore import QObject, QRunnable, QThread, QThreadPool, QTimer, Qt, Signal, Slot

from ..utils import get_logger


class WorkerSignals(QObject):
    finished = Signal()
    error = Signal(Exception)
    result = Signal(object)
    progress = Signal(object, object)


class Worker(QRunnable):
    def __init__(self, fn: Callable[[Callable[[int, int], None]], Any]) -> None:
        super().__init__()
        self.fn = fn
        self.signals = WorkerSignals()
        self.logger = get_logger("webstore.qt")

    def _report(self, done: int, total: int) -> None:
        self.signals.progress.emit(done, total)

    @Slot()
    def run(self) -> None:
        self.logger.debug("Worker start thread=%s", QThread.currentThread())
        try:
            result = self.fn(self._report)
        except Exception as exc:
            self.logger.debug("Worker error thread=%s exc=%s", QThread.currentThread(), exc)
            self.signals.error.emit(exc)
        else:
            self.logger.debug("Worker result thread=%s", QThread.currentThread())
            self.signals.result.emit(result)
        finally:
            self.logger.debug("Worker finished thread=%s", QThread.currentThread())
            self.signals.finished.emit()


class TaskRunner:
    """Runs blocking calls on the global pool; callbacks come back on the GUI thread."""

    def __init__(self) -> None:
        self.pool = QThreadPool.globalInstance()
        self.logger = get_logger("webstore.qt")
        self._workers = set()

    def run(
        self,
        fn: Callable[[Callable[[int, int], None]], Any],
        on_result: Optional[Callable[[Any], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        on_finished: Optional[Callable[[], None]] = None,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> Worker:
        worker = Worker(fn)
        self._workers.add(worker)
        if on_progress:
            worker.signals.progress.connect(on_progress, Qt.QueuedConnection)
        if on_result:
            worker.signals.result.connect(on_result, Qt.QueuedConnection)
        if on_error:
            worker.signals.error.connect(on_error, Qt.QueuedConnection)
        if on_finished:
            worker.signals.finished.connect(on_finished, Qt.QueuedConnection)
        worker.signals.finished.connect(lambda: self._workers.discard(worker), Qt.QueuedConnection)
        self.logger.debug("TaskRunner start worker thread=%s", QThread.currentThread())
        self.pool.start(worker)
        return worker


class TimerScheduler:
    def call_later(self, seconds: float, fn: Callable[[], None]) -> None:
        QTimer.singleShot(int(seconds * 1000), fn)
