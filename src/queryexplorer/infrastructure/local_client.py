"""
Execution client running queries against local event files.
"""

from pathlib import Path

from .event_source import load_events
from .logging_config import get_logger
from ..core.analysis import run_analysis

logger = get_logger(__name__)


class LocalQueryClient:
    """
    Execution client backed by a directory of event collections.

    run() is synchronous: the callback is invoked before run() returns.
    Use ui.workers.ThreadedQueryClient to keep it off the GUI thread.
    """

    def __init__(self, data_dir: Path):
        """
        Initialize the client.

        Args:
            data_dir: Directory containing event collection files.
        """
        self.data_dir = Path(data_dir)

    def execute(self, request) -> dict:
        """
        Run a request and return the response.

        Raises:
            ValueError: If the request has no event collection or is unsupported.
            FileNotFoundError: If the event collection does not exist.
        """
        params = request.params
        collection = params.get('event_collection')
        if not collection:
            raise ValueError("Query has no event_collection")

        events = load_events(self.data_dir, collection)
        response = run_analysis(events, params)

        email = params.get('email')
        if email:
            # Delivery is handled outside this client
            logger.info(f"Email extraction on {collection} requested for {email}")
            response['email'] = email

        return response

    def run(self, request, callback) -> None:
        """
        Run a request and report through callback(error, response).

        Args:
            request: QueryRequest with analysis parameters.
            callback: Called once with (None, response) or (error, None).
        """
        try:
            response = self.execute(request)
        except Exception as e:
            logger.error(f"Query on {request.params.get('event_collection')} failed: {e}", exc_info=True)
            callback(e, None)
            return
        callback(None, response)
