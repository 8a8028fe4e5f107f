"""
Explorer actions.

Actions turn user intent into update records on the dispatch channel. They
read explorer state through the store, validate queries, run them through an
execution client and announce the outcome. They never modify state directly.

The dispatcher is anything with a dispatch(record) method; the store is
anything with a get(id) method returning an Explorer or None.
"""

import uuid
from typing import Callable, Optional, Union

from . import explorer_utils
from . import validations
from .models import ActionType, Explorer, ExplorerId, UpdateRecord
from ..config.settings import AppSettings, get_settings
from ..infrastructure.logging_config import get_logger


logger = get_logger(__name__)


class ExplorerBusyError(RuntimeError):
    """Raised when exec is called for an explorer that is already loading."""


def _error_message(error) -> str:
    """Extract a user-facing message from an error object, dict or exception."""
    if isinstance(error, dict):
        return str(error.get('message', error))
    message = getattr(error, 'message', None)
    if message:
        return str(message)
    return str(error)


class NoticeActions:
    """Create and clear user-facing notices."""

    def __init__(self, dispatcher):
        self._dispatcher = dispatcher

    def create(self, attrs: dict) -> None:
        self._dispatcher.dispatch(UpdateRecord(ActionType.NOTICE_CREATE, attrs=attrs))

    def clear_all(self) -> None:
        self._dispatcher.dispatch(UpdateRecord(ActionType.NOTICE_CLEAR_ALL))


class AppStateActions:
    """Update application-wide state flags."""

    def __init__(self, dispatcher):
        self._dispatcher = dispatcher

    def update(self, updates: dict) -> None:
        self._dispatcher.dispatch(UpdateRecord(ActionType.APP_STATE_UPDATE, updates=updates))


class ExplorerActions:
    """
    Orchestrates explorer lifecycle and query execution.

    Every operation reads state through the store and writes only through
    the dispatcher.
    """

    def __init__(
        self,
        dispatcher,
        store,
        settings: Optional[AppSettings] = None,
        notice_actions: Optional[NoticeActions] = None,
        app_state_actions: Optional[AppStateActions] = None,
    ):
        """
        Initialize the actions.

        Args:
            dispatcher: Dispatch channel receiving UpdateRecord objects.
            store: Explorer lookup exposing get(id).
            settings: Application settings. Defaults to the global settings.
            notice_actions: Notice actions. Built on the same dispatcher if None.
            app_state_actions: App state actions. Built on the same dispatcher if None.
        """
        self._dispatcher = dispatcher
        self._store = store
        self._settings = settings if settings is not None else get_settings()
        self.notices = notice_actions or NoticeActions(dispatcher)
        self.app_state = app_state_actions or AppStateActions(dispatcher)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self, attrs: dict) -> ExplorerId:
        """
        Create a new explorer.

        Args:
            attrs: Explorer attributes. A temporary id is assigned if missing.

        Returns:
            The id of the created explorer.
        """
        attrs = dict(attrs)
        if attrs.get('id') is None:
            attrs['id'] = f"TEMP-{uuid.uuid4()}"
        self._dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_CREATE, attrs=attrs))
        return attrs['id']

    def create_batch(self, models: list[Explorer]) -> None:
        """Create many explorers at once, preserving their order."""
        self._dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_CREATE_BATCH, models=list(models)))

    def update(self, explorer_id: ExplorerId, updates: dict) -> None:
        self._dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_UPDATE, id=explorer_id, updates=updates))

    def remove(self, explorer_id: ExplorerId) -> None:
        self._dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_REMOVE, id=explorer_id))

    def set_active(self, explorer_id: ExplorerId) -> None:
        self._dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_SET_ACTIVE, id=explorer_id))

    def create_and_activate(self, attrs: dict) -> ExplorerId:
        """
        Create an explorer and make it the active one.

        Dispatches EXPLORER_CREATE followed by EXPLORER_SET_ACTIVE.
        """
        explorer_id = self.create(attrs)
        self.set_active(explorer_id)
        return explorer_id

    def clone(self, source_id: ExplorerId) -> ExplorerId:
        """
        Duplicate an explorer and activate the copy.

        The copy keeps the query and visualization but not the id, result
        or runtime flags.

        Args:
            source_id: Id of the explorer to duplicate.

        Returns:
            The id of the copy.
        """
        source = self._resolve(source_id)
        attrs = explorer_utils.to_json(source)
        attrs.pop('id', None)
        attrs['name'] = f"{source.name} copy" if source.name else ''
        return self.create_and_activate(attrs)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def exec(self, client, explorer: Union[Explorer, ExplorerId]) -> None:
        """
        Validate and run an explorer's query.

        Args:
            client: Execution client exposing run(request, callback).
            explorer: Explorer, or its id.

        Raises:
            ExplorerBusyError: If the explorer is already loading.
        """
        explorer = self._resolve(explorer)
        if explorer.loading:
            raise ExplorerBusyError(
                f"Warning: calling exec when model loading is true. Explorer id: {explorer.id}"
            )

        result = validations.run_validations(validations.EXPLORER_RULES, explorer.query)
        if not result.is_valid:
            self.exec_error(explorer, {'message': result.last_error})
            return

        self.update(explorer.id, {'loading': True})

        params = explorer_utils.query_params(explorer.query)
        if params.get('analysis_type') == 'extraction' and 'latest' not in params:
            params['latest'] = self._settings.extraction_latest_limit

        explorer_id = explorer.id

        def on_complete(error, response):
            if error:
                self.exec_error(explorer_id, error)
            else:
                self.exec_success(explorer_id, response)

        logger.debug(f"Running {params.get('analysis_type')} query for explorer {explorer_id}")
        explorer_utils.run_query(client, explorer.query, on_complete, params=params)

    def exec_error(self, explorer: Union[Explorer, ExplorerId], error) -> None:
        """
        Announce a failed execution.

        Clears the loading flag and creates an error notice.
        """
        explorer_id = self._id_of(explorer)
        message = _error_message(error)
        logger.info(f"Query for explorer {explorer_id} failed: {message}")
        self.update(explorer_id, {'loading': False})
        self.notices.create({'text': message, 'type': 'error'})

    def exec_success(self, explorer: Union[Explorer, ExplorerId], response: dict) -> None:
        """
        Announce a successful execution.

        Stores the result, clears the loading flag and clears stale notices.
        """
        # TODO: reset the visualization's chart_type when it cannot display the new result's shape
        explorer_id = self._id_of(explorer)
        self.update(explorer_id, {'loading': False, 'result': response.get('result')})
        self.notices.clear_all()

    def run_email_extraction(self, client, explorer: Union[Explorer, ExplorerId], callback: Callable[[dict], None]) -> None:
        """
        Run an extraction whose results are emailed.

        Validation failures are reported through the callback, never raised.

        Args:
            client: Execution client exposing run(request, callback).
            explorer: Explorer, or its id.
            callback: Called once with {'success': bool, ...}.
        """
        explorer = self._resolve(explorer)

        result = validations.run_validations(validations.EXPLORER_RULES, explorer.query)
        if result.is_valid:
            result = validations.run_validations(validations.EMAIL_EXTRACTION_RULES, explorer.query)
        if not result.is_valid:
            callback({'success': False, 'error': result.last_error})
            return

        query = explorer.query.copy()
        if query.latest == '':
            query.latest = None

        def on_complete(error, response):
            if error:
                callback({'success': False, 'error': _error_message(error)})
            else:
                callback({'success': True, **(response or {})})

        explorer_utils.run_query(client, query, on_complete)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def get_persisted(self, persistence) -> None:
        """
        Load every saved explorer.

        Invalid records are logged and skipped; valid ones are created in a
        single batch. The fetching flag is cleared once done.

        Args:
            persistence: Backend exposing get(id, callback).
        """
        def on_fetched(error, records):
            if error:
                logger.error(f"Failed to fetch persisted explorers: {_error_message(error)}")
                self.notices.create({'text': _error_message(error), 'type': 'error'})
                self.app_state.update({'fetchingPersistedExplorers': False})
                return

            valid_models = []
            for record in records or []:
                try:
                    explorer = explorer_utils.format_query_params(Explorer.from_dict(record))
                except (TypeError, ValueError) as e:
                    logger.warning("A persisted explorer model is invalid: %s (%s)", record, e)
                    continue
                result = validations.run_validations(validations.EXPLORER_RULES, explorer.query)
                if result.is_valid:
                    valid_models.append(explorer)
                else:
                    logger.warning("A persisted explorer model is invalid: %s", explorer)

            self.create_batch(valid_models)
            self.app_state.update({'fetchingPersistedExplorers': False})

        persistence.get(None, on_fetched)

    def save(self, persistence, explorer_id: ExplorerId) -> None:
        """
        Persist changes to an already saved explorer.

        Args:
            persistence: Backend exposing update(id, attrs, callback).
            explorer_id: Id of the explorer to save.
        """
        explorer = self._resolve(explorer_id)
        self.update(explorer.id, {'saving': True})

        def on_saved(error, saved):
            if error:
                self.update(explorer.id, {'saving': False})
                self.notices.create({'text': _error_message(error), 'type': 'error'})
                return
            self.update(explorer.id, {'saving': False, 'name': saved.get('name', explorer.name)})

        persistence.update(explorer.id, explorer_utils.to_json(explorer), on_saved)

    def save_new(self, persistence, source_id: ExplorerId, name: str) -> None:
        """
        Save a copy of an explorer under a new name.

        The active explorer is left unchanged. Dispatches, in order: saving
        flag on the source, creation of the saved copy, saving flag cleared.

        Args:
            persistence: Backend exposing create(attrs, callback).
            source_id: Id of the explorer to copy.
            name: Name of the new saved explorer.
        """
        source = self._resolve(source_id)
        attrs = explorer_utils.to_json(source)
        attrs.pop('id', None)
        attrs['name'] = name

        self.update(source.id, {'saving': True})

        def on_created(error, created):
            if error:
                self.update(source.id, {'saving': False})
                self.notices.create({'text': _error_message(error), 'type': 'error'})
                return
            new_attrs = dict(attrs)
            new_attrs.update(created)
            self.create(new_attrs)
            self.update(source.id, {'saving': False})

        persistence.create(attrs, on_created)

    def destroy(self, persistence, explorer_id: ExplorerId) -> None:
        """
        Delete a saved explorer.

        Dispatches EXPLORER_DESTROYING, then EXPLORER_DESTROY_SUCCESS or
        EXPLORER_DESTROY_FAIL with an error notice.
        """
        self._dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_DESTROYING, id=explorer_id))

        def on_destroyed(error, _response=None):
            if error:
                self._dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_DESTROY_FAIL, id=explorer_id))
                self.notices.create({'text': _error_message(error), 'type': 'error'})
                return
            self._dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_DESTROY_SUCCESS, id=explorer_id))

        persistence.destroy(explorer_id, on_destroyed)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _id_of(explorer) -> ExplorerId:
        if isinstance(explorer, Explorer):
            return explorer.id
        if isinstance(explorer, dict):
            return explorer.get('id')
        return explorer

    def _resolve(self, explorer) -> Explorer:
        """
        Get the current state of an explorer from the store.

        Falls back to the given Explorer when the store does not know it.

        Raises:
            KeyError: If an id is given and the store has no such explorer.
        """
        found = self._store.get(self._id_of(explorer))
        if found is not None:
            return found
        if isinstance(explorer, Explorer):
            return explorer
        raise KeyError(f"No explorer with id: {explorer}")
