"""
Worker threads for background query execution.

This module provides worker threads for running queries without blocking
the UI thread, and an execution client that routes their results back to
the caller's callback on the thread owning the client.
"""

from typing import Callable

from PySide6.QtCore import QObject, QThread, Signal, Slot

from queryexplorer.infrastructure.logging_config import get_logger


logger = get_logger(__name__)


class QueryWorkerThread(QThread):
    """
    Worker thread running a single query request.

    The wrapped client must expose execute(request) -> response and raise
    on failure.
    """

    # Signal emitted when the query completes (response)
    query_complete = Signal(object)

    # Signal emitted when the query fails (exception)
    query_error = Signal(object)

    def __init__(self, client, request, parent=None):
        """
        Initialize the worker thread.

        Args:
            client: Synchronous client exposing execute(request).
            request: QueryRequest to run.
            parent: Parent QObject.
        """
        super().__init__(parent)
        self._client = client
        self._request = request

    def run(self):
        """Run the query."""
        try:
            response = self._client.execute(self._request)
        except Exception as e:
            logger.error(f"Error running query in thread: {e}", exc_info=True)
            self.query_error.emit(e)
            return
        self.query_complete.emit(response)


class ThreadedQueryClient(QObject):
    """
    Execution client running each request on its own worker thread.

    Callbacks are invoked on the thread this client lives in, once its
    event loop processes the worker's signals. There is no timeout: a
    request that never finishes never calls back.
    """

    def __init__(self, client, parent=None):
        """
        Initialize the threaded client.

        Args:
            client: Synchronous client exposing execute(request).
            parent: Parent QObject.
        """
        super().__init__(parent)
        self._client = client
        self._workers: dict[QueryWorkerThread, Callable] = {}

    def run(self, request, callback: Callable) -> QueryWorkerThread:
        """
        Start a request in the background.

        Args:
            request: QueryRequest to run.
            callback: Called as callback(error, response).

        Returns:
            The started worker thread.
        """
        worker = QueryWorkerThread(self._client, request)
        self._workers[worker] = callback
        worker.query_complete.connect(self._on_complete)
        worker.query_error.connect(self._on_error)
        worker.finished.connect(self._on_finished)
        worker.start()
        return worker

    def active_count(self) -> int:
        """Number of requests that have not finished yet."""
        return len(self._workers)

    @Slot(object)
    def _on_complete(self, response):
        callback = self._workers.get(self.sender())
        if callback is not None:
            callback(None, response)

    @Slot(object)
    def _on_error(self, error):
        callback = self._workers.get(self.sender())
        if callback is not None:
            callback(error, None)

    @Slot()
    def _on_finished(self):
        worker = self.sender()
        self._workers.pop(worker, None)
        if worker is not None:
            worker.deleteLater()
