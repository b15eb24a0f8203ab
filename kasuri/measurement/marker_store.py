"""
Ordered store of measurement markers.

Every mutation swaps in a new tuple, so a snapshot taken by a consumer
(display, export) never changes underneath it.
"""

import logging
from typing import Iterable, Iterator, Optional, Tuple

from kasuri.common.types import Marker

logger = logging.getLogger(__name__)


class MarkerStore:
    """
    Immutable-snapshot list of markers.

    Example:
        >>> store = MarkerStore()
        >>> snapshot = store.markers
        >>> _ = store.append(Marker(x=0.5, y=0.5, row=16, col=40))
        >>> len(snapshot), len(store.markers)
        (0, 1)
    """

    def __init__(self, markers: Iterable[Marker] = ()):
        self._markers: Tuple[Marker, ...] = tuple(markers)

    @property
    def markers(self) -> Tuple[Marker, ...]:
        """Current snapshot."""
        return self._markers

    def append(self, marker: Marker) -> Tuple[Marker, ...]:
        self._markers = self._markers + (marker,)
        logger.debug(f"Marker added at row {marker.row}, col {marker.col}")
        return self._markers

    def remove_at(self, index: int) -> Marker:
        """
        Remove the marker at ``index``.

        Raises:
            IndexError: If ``index`` is out of range.
        """
        if not 0 <= index < len(self._markers):
            raise IndexError(
                f"Marker index {index} out of range (have {len(self._markers)})"
            )
        removed = self._markers[index]
        self._markers = self._markers[:index] + self._markers[index + 1 :]
        return removed

    def remove_last(self) -> Optional[Marker]:
        """Remove the most recent marker. Returns None if the store is empty."""
        if not self._markers:
            return None
        removed = self._markers[-1]
        self._markers = self._markers[:-1]
        return removed

    def replace_all(self, markers: Iterable[Marker]) -> Tuple[Marker, ...]:
        self._markers = tuple(markers)
        logger.info(f"Marker list replaced ({len(self._markers)} markers)")
        return self._markers

    def clear(self) -> None:
        self._markers = ()

    def __len__(self) -> int:
        return len(self._markers)

    def __iter__(self) -> Iterator[Marker]:
        return iter(self._markers)

    def __getitem__(self, index: int) -> Marker:
        return self._markers[index]
