"""Moving-average smoothing of angle channels.

One AngleSmoother belongs to one measurement session. It must be reset
whenever hand detection is lost so that samples from before and after
reacquisition are never averaged together.

Example:
    >>> smoother = AngleSmoother(max_history=5)
    >>> smoother.push("wrist.palmar_flexion", 42.0)
    >>> smoother.read("wrist.palmar_flexion")
    42.0
    >>> smoother.reset()
"""

import math
import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from handrom.types import MotionAngles


def _check_history(max_history: int) -> None:
    if max_history < 1:
        raise ValueError(f"max_history must be >= 1, got {max_history}")


class SmoothingChannel:
    """Bounded FIFO of raw values for one angle channel.

    Args:
        max_history: Number of most recent values averaged.
    """

    def __init__(self, max_history: int = 5):
        _check_history(max_history)
        self._max_history = max_history
        self._history: Deque[float] = deque(maxlen=max_history)

    @property
    def max_history(self) -> int:
        return self._max_history

    def push(self, value: float) -> None:
        """Append a value, evicting the oldest one when full.

        Raises:
            ValueError: If ``value`` is not finite.
        """
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"Cannot smooth non-finite value {value}")
        self._history.append(value)

    def read(self) -> Optional[float]:
        """Mean of the current window, or None when empty."""
        if not self._history:
            return None
        lo, hi = min(self._history), max(self._history)
        if lo == hi:
            return lo
        return math.fsum(self._history) / len(self._history)

    def reset(self) -> None:
        self._history.clear()

    def values(self) -> List[float]:
        return list(self._history)

    def __len__(self) -> int:
        return len(self._history)


class AngleSmoother:
    """Per-channel moving average across consecutive frames.

    Channels are created on first push. All operations hold an internal
    lock; values pushed to one channel are applied in call order.

    Args:
        max_history: Window length of every channel.
    """

    def __init__(self, max_history: int = 5):
        _check_history(max_history)
        self._max_history = max_history
        self._channels: Dict[str, SmoothingChannel] = {}
        self._lock = threading.Lock()

    @property
    def max_history(self) -> int:
        return self._max_history

    @property
    def channels(self) -> List[str]:
        with self._lock:
            return list(self._channels)

    def push(self, channel: str, value: float) -> None:
        """Append a value to a channel.

        Raises:
            ValueError: If ``value`` is not finite.
        """
        with self._lock:
            self._push(channel, value)

    def _push(self, channel: str, value: float) -> None:
        smoothing = self._channels.get(channel)
        if smoothing is None:
            smoothing = SmoothingChannel(self._max_history)
            self._channels[channel] = smoothing
        smoothing.push(value)

    def read(self, channel: str) -> Optional[float]:
        """Smoothed value of a channel, or None if it holds no values."""
        with self._lock:
            smoothing = self._channels.get(channel)
            return smoothing.read() if smoothing is not None else None

    def reset(self, channel: Optional[str] = None) -> None:
        """Clear one channel, or every channel when ``channel`` is None."""
        with self._lock:
            if channel is None:
                for smoothing in self._channels.values():
                    smoothing.reset()
            elif channel in self._channels:
                self._channels[channel].reset()

    def push_angles(self, motion: MotionAngles) -> Dict[str, float]:
        """Push all eight angle channels of a frame and read them back.

        Returns:
            Smoothed degree value per channel name.
        """
        with self._lock:
            values = motion.channel_values()
            for channel, value in values.items():
                self._push(channel, value)
            return {channel: self._channels[channel].read() for channel in values}
