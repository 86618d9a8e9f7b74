"""
Scoped event subscriptions for media sources.

Every helper here registers listeners on entry and removes them on exit,
whichever way the block is left (result, exception, timeout, cancellation).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from chaptertube.exceptions import LoadError
from chaptertube.media.base import MediaEvent, MediaStatus, ReadyState

if TYPE_CHECKING:
    from chaptertube.media.base import Listener, MediaSource

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def listening(
    source: MediaSource,
    events: Iterable[MediaEvent],
    callback: Listener,
) -> Iterator[None]:
    """Register ``callback`` on several events for the duration of the block."""
    registered = list(events)
    for event in registered:
        source.add_listener(event, callback)
    try:
        yield
    finally:
        for event in registered:
            source.remove_listener(event, callback)


@contextlib.contextmanager
def subscribe(source: MediaSource, event: MediaEvent) -> Iterator[asyncio.Future]:
    """Yield a future resolved by the first ``event`` fired inside the block.

    Must be entered from a running event loop.
    """
    future: asyncio.Future = asyncio.get_running_loop().create_future()

    def _on_event(emitter: MediaSource) -> None:
        if not future.done():
            future.set_result(emitter)

    with listening(source, (event,), _on_event):
        try:
            yield future
        finally:
            if not future.done():
                future.cancel()


async def wait_for_event(
    source: MediaSource,
    event: MediaEvent,
    timeout: float,
) -> bool:
    """Wait up to ``timeout`` seconds for ``event``.

    Returns:
        True if the event fired, False on timeout.
    """
    with subscribe(source, event) as fired:
        done, _ = await asyncio.wait({fired}, timeout=timeout)
        return fired in done


def load_error_for(source: MediaSource) -> LoadError:
    """Translate a source's recorded error into a LoadError."""
    if source.error is None:
        return LoadError()
    return LoadError(
        code=source.error.code,
        details={"message": source.error.message} if source.error.message else None,
    )


async def wait_for_ready_state(
    source: MediaSource,
    minimum: ReadyState,
    timeout: float,
    poll_interval: float = 0.05,
) -> bool:
    """Wait until ``source.ready_state >= minimum``.

    Wakes on readiness events and also polls, since some decoders change
    readiness without notifying.

    Returns:
        True once ready, False if ``timeout`` elapsed first.

    Raises:
        LoadError: If the source is in, or enters, an error state.
    """
    if source.ready_state >= minimum:
        return True
    if source.status is MediaStatus.ERROR:
        raise load_error_for(source)

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    changed = asyncio.Event()
    failed = False

    def _on_change(_: MediaSource) -> None:
        changed.set()

    def _on_error(_: MediaSource) -> None:
        nonlocal failed
        failed = True
        changed.set()

    wake_events = (MediaEvent.LOADED_METADATA, MediaEvent.CAN_PLAY, MediaEvent.SEEKED)
    with listening(source, wake_events, _on_change), listening(
        source, (MediaEvent.ERROR,), _on_error
    ):
        while source.ready_state < minimum:
            if failed:
                raise load_error_for(source)
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.debug(
                    f"Ready state {source.ready_state.name} < {minimum.name} "
                    f"after {timeout}s"
                )
                return False
            changed.clear()
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(
                    changed.wait(), timeout=min(poll_interval, remaining)
                )
    return True
