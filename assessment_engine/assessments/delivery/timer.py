"""
Session Timer

Counts down the time budget of a timed session on the asyncio event loop and
fires the expiry callback exactly once when it runs out.
"""

import asyncio
import logging
from typing import Callable, Optional

from assessment_engine.common.config import TimerConfig, get_config

logger = logging.getLogger(__name__)


def format_seconds(seconds: int) -> str:
    """Render seconds as ``MM:SS``."""
    minutes, secs = divmod(max(seconds, 0), 60)
    return f"{minutes:02d}:{secs:02d}"


class SessionTimer:
    """
    Countdown over ``time_limit`` minutes.

    ``tick()`` performs one decrement and can be driven directly; ``start()``
    schedules a task that calls it every ``tick_interval_seconds``. The timer is
    the only writer of ``remaining_seconds``.

    Args:
        time_limit: Budget in minutes; ``None`` makes the timer inert
        on_expire: Called once when the countdown reaches zero
        config: Tick interval and warning threshold
    """

    def __init__(
        self,
        time_limit: Optional[float],
        on_expire: Callable[[], None],
        config: Optional[TimerConfig] = None
    ):
        self.config = config or get_config().timer
        self.total_seconds: Optional[int] = (
            int(round(time_limit * 60)) if time_limit is not None else None
        )
        self.remaining_seconds: Optional[int] = self.total_seconds
        self._on_expire = on_expire
        self._task: Optional[asyncio.Task] = None
        self._stopped = False
        self._expired = False

    @property
    def enabled(self) -> bool:
        return self.total_seconds is not None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stopped

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def is_warning(self) -> bool:
        return (
            self.remaining_seconds is not None
            and self.remaining_seconds < self.config.warning_threshold_seconds
        )

    @property
    def elapsed_seconds(self) -> Optional[int]:
        if self.total_seconds is None:
            return None
        return self.total_seconds - (self.remaining_seconds or 0)

    def format_remaining(self) -> Optional[str]:
        if self.remaining_seconds is None:
            return None
        return format_seconds(self.remaining_seconds)

    def tick(self) -> None:
        """Advance the countdown by one second."""
        if not self.enabled or self._stopped or self._expired:
            return

        self.remaining_seconds = max(self.remaining_seconds - 1, 0)
        if self.remaining_seconds == 0:
            self._expire()

    def _expire(self) -> None:
        self._expired = True
        self.stop()
        logger.warning("Time is up! Your assessment will be submitted.")
        self._on_expire()

    def start(self) -> None:
        """
        Begin ticking on the running event loop. No-op when untimed, already
        running, or stopped.
        """
        if not self.enabled or self._stopped or self._expired or self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"Timer started with {self.format_remaining()} remaining")

    async def _run(self) -> None:
        interval = self.config.tick_interval_seconds
        while not self._stopped and not self._expired:
            await asyncio.sleep(interval)
            self.tick()

    def stop(self) -> None:
        """Stop ticking for good. No callback fires afterwards."""
        if self._stopped:
            return
        self._stopped = True
        task = self._task
        if task is not None and not task.done():
            try:
                current = asyncio.current_task()
            except RuntimeError:
                current = None
            if task is not current:
                task.cancel()
        if self.enabled:
            logger.info(f"Timer stopped with {self.format_remaining()} remaining")
