"""
Dispatch channel built on a Qt signal.

Stores register a callback; actions call dispatch(record). Callbacks living
in the emitting thread are invoked synchronously, in registration order.
"""

from typing import Callable

from PySide6.QtCore import QObject, Signal

from queryexplorer.core.models import UpdateRecord
from queryexplorer.infrastructure.logging_config import get_logger


logger = get_logger(__name__)


class AppDispatcher(QObject):
    """
    Broadcasts update records to every registered store.
    """

    # Signal emitted for every dispatched record (UpdateRecord)
    dispatched = Signal(object)

    def __init__(self, parent=None):
        """
        Initialize the dispatcher.

        Args:
            parent: Parent QObject.
        """
        super().__init__(parent)
        self._callbacks: list[Callable[[UpdateRecord], None]] = []

    def register(self, callback: Callable[[UpdateRecord], None]) -> None:
        """
        Register a callback receiving every dispatched record.

        Args:
            callback: Called with the UpdateRecord.
        """
        self._callbacks.append(callback)
        self.dispatched.connect(callback)

    def unregister(self, callback: Callable[[UpdateRecord], None]) -> None:
        """Stop delivering records to a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)
            self.dispatched.disconnect(callback)

    def dispatch(self, record: UpdateRecord) -> None:
        """
        Deliver a record to all registered callbacks.

        Args:
            record: The update record to broadcast.
        """
        logger.debug(f"Dispatching {record.action_type.value} (id={record.id})")
        self.dispatched.emit(record)
