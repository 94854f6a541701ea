"""Snapshot capture pipeline: frames, allocation, rendering, commit."""

import logging
from typing import Any

from .allocator import ReferenceAllocator
from .exceptions import DriverUnavailableError, FailureKind, SnapshotFailure
from .frames import FrameAccessor
from .serializer import SnapshotSerializer
from .store import SnapshotStore
from .types import SnapshotEntry

logger = logging.getLogger(__name__)

# Attempts made when a frame detaches mid-capture
CAPTURE_ATTEMPTS = 2


async def capture_page_snapshot(
    page: Any, store: SnapshotStore
) -> tuple[SnapshotEntry | None, SnapshotFailure | None]:
    """
    Capture a page and commit the result as the store's next generation.

    Nothing is committed unless every visible frame was read successfully.

    Args:
        page: Playwright Page to capture
        store: Store of the tab owning the page

    Returns:
        Tuple of (entry, failure); exactly one of them is None
    """
    generation = store.next_generation
    last_error: DriverUnavailableError | None = None

    for attempt in range(1, CAPTURE_ATTEMPTS + 1):
        # Keys tagged by a failed attempt must not be mistaken for this attempt's keys
        capture_id = f"{generation}.{attempt}"
        try:
            captures = await FrameAccessor(page, capture_id).capture()
        except DriverUnavailableError as e:
            last_error = e
            logger.info(f"Capture attempt {attempt}/{CAPTURE_ATTEMPTS} failed: {e}")
            continue

        tree = ReferenceAllocator().allocate(captures, generation)
        text = SnapshotSerializer().render(tree)
        entry = store.commit(tree, text)
        logger.info(
            f"Snapshot generation {entry.generation} captured: "
            f"{len(tree.frames)} frame(s), {len(tree.index)} ref(s)"
        )
        return entry, None

    return None, SnapshotFailure(
        FailureKind.DRIVER_UNAVAILABLE,
        f"Could not capture the page because the browser was not available: {last_error}",
    )
