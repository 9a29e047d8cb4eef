from typing import Optional
from chart_agent.models import DatasetSnapshot
from chart_agent.utils.exceptions import DatasetNotLoadedError
from chart_agent.utils.logger import get_logger

logger = get_logger(__name__)


class DatasetStore:
    """
    Holds the session's current dataset snapshot.

    Replacing the dataset swaps a single reference; a request that already
    fetched a snapshot keeps reading that snapshot until it finishes.
    """

    def __init__(self, snapshot: Optional[DatasetSnapshot] = None):
        self._snapshot = snapshot

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    def get(self) -> DatasetSnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise DatasetNotLoadedError()
        return snapshot

    def set(self, snapshot: DatasetSnapshot) -> None:
        logger.info(f"Activating dataset '{snapshot.filename}' ({len(snapshot.dataframe)} rows)")
        self._snapshot = snapshot

    def clear(self) -> None:
        self._snapshot = None
