"""
Stores holding explorer, notice and application state.

Stores register with the dispatcher and apply the update records they
receive. They own the authoritative copy of the state; actions only read
from them.
"""

from collections import OrderedDict
from typing import Optional

from .models import ActionType, Explorer, ExplorerId, Notice, UpdateRecord
from ..infrastructure.logging_config import get_logger


logger = get_logger(__name__)


class ExplorerStore:
    """
    Ordered collection of explorers plus the id of the active one.
    """

    def __init__(self, dispatcher=None):
        """
        Initialize the store.

        Args:
            dispatcher: Dispatch channel to register with. Optional so the
                store can be fed records directly.
        """
        self._explorers: 'OrderedDict[ExplorerId, Explorer]' = OrderedDict()
        self._active_id: Optional[ExplorerId] = None
        # Snapshot of flags taken when a destroy starts, restored on failure
        self._pre_destroy: dict[ExplorerId, bool] = {}

        if dispatcher is not None:
            dispatcher.register(self.handle)

    def get(self, explorer_id: ExplorerId) -> Optional[Explorer]:
        """
        Retrieve an explorer by id.

        Returns:
            The Explorer if found, None otherwise.
        """
        return self._explorers.get(explorer_id)

    def get_all(self) -> list[Explorer]:
        return list(self._explorers.values())

    def get_active(self) -> Optional[Explorer]:
        if self._active_id is None:
            return None
        return self._explorers.get(self._active_id)

    def handle(self, record: UpdateRecord) -> None:
        """Apply a dispatched update record."""
        action_type = record.action_type

        if action_type == ActionType.EXPLORER_CREATE:
            self._add(Explorer.from_dict(record.attrs or {}))
        elif action_type == ActionType.EXPLORER_CREATE_BATCH:
            for model in record.models or []:
                self._add(model)
        elif action_type == ActionType.EXPLORER_UPDATE:
            explorer = self._explorers.get(record.id)
            if explorer is None:
                logger.warning(f"Update for unknown explorer id: {record.id}")
                return
            explorer.apply_updates(record.updates or {})
        elif action_type in (ActionType.EXPLORER_REMOVE, ActionType.EXPLORER_DESTROY_SUCCESS):
            self._explorers.pop(record.id, None)
            self._pre_destroy.pop(record.id, None)
            if self._active_id == record.id:
                self._active_id = None
        elif action_type == ActionType.EXPLORER_SET_ACTIVE:
            if record.id not in self._explorers:
                logger.warning(f"Cannot activate unknown explorer id: {record.id}")
                return
            self._active_id = record.id
        elif action_type == ActionType.EXPLORER_DESTROYING:
            explorer = self._explorers.get(record.id)
            if explorer is not None:
                self._pre_destroy[record.id] = explorer.destroying
                explorer.destroying = True
        elif action_type == ActionType.EXPLORER_DESTROY_FAIL:
            explorer = self._explorers.get(record.id)
            if explorer is not None:
                explorer.destroying = self._pre_destroy.pop(record.id, False)

    def _add(self, explorer: Explorer) -> None:
        if explorer.id in self._explorers:
            logger.debug(f"Replacing explorer with id: {explorer.id}")
        self._explorers[explorer.id] = explorer


class NoticeStore:
    """List of notices currently shown to the user."""

    def __init__(self, dispatcher=None):
        self._notices: list[Notice] = []
        if dispatcher is not None:
            dispatcher.register(self.handle)

    def get_all(self) -> list[Notice]:
        return list(self._notices)

    def handle(self, record: UpdateRecord) -> None:
        if record.action_type == ActionType.NOTICE_CREATE:
            attrs = record.attrs or {}
            self._notices.append(Notice(text=attrs.get('text', ''), type=attrs.get('type', 'info')))
        elif record.action_type == ActionType.NOTICE_CLEAR_ALL:
            self._notices.clear()


class AppStateStore:
    """Application-wide flags, such as whether saved explorers are being fetched."""

    def __init__(self, dispatcher=None):
        self._state: dict = {'fetchingPersistedExplorers': True}
        if dispatcher is not None:
            dispatcher.register(self.handle)

    def get(self, key: str, default=None):
        return self._state.get(key, default)

    def get_all(self) -> dict:
        return dict(self._state)

    def handle(self, record: UpdateRecord) -> None:
        if record.action_type == ActionType.APP_STATE_UPDATE:
            self._state.update(record.updates or {})
