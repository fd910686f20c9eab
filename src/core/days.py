"""Day arithmetic over the chain's epoch index."""
from typing import Optional, Tuple

from src.core.errors import ConfigurationError, InvalidDayRangeError

SECONDS_PER_DAY = 24 * 60 * 60


class DayClock:
    """
    Maps epochs onto day buckets.

    A day is ``epoch // epochs_per_day`` where
    ``epochs_per_day = 86400 // seconds_per_slot // slots_per_epoch``.
    """

    def __init__(self, seconds_per_slot: int, slots_per_epoch: int):
        if seconds_per_slot <= 0 or slots_per_epoch <= 0:
            raise ConfigurationError(
                f"chain constants must be positive (seconds_per_slot={seconds_per_slot}, "
                f"slots_per_epoch={slots_per_epoch})"
            )

        self.seconds_per_slot = seconds_per_slot
        self.slots_per_epoch = slots_per_epoch
        self.epochs_per_day = SECONDS_PER_DAY // seconds_per_slot // slots_per_epoch

        if self.epochs_per_day == 0:
            raise ConfigurationError(
                f"a day is shorter than one epoch (seconds_per_slot={seconds_per_slot}, "
                f"slots_per_epoch={slots_per_epoch})"
            )

    def current_day(self, latest_epoch: Optional[int]) -> Optional[int]:
        """Return the day containing ``latest_epoch``, or None while the first day is still being indexed."""
        if latest_epoch is None or latest_epoch < self.epochs_per_day:
            return None
        return latest_epoch // self.epochs_per_day

    @staticmethod
    def previous_day(current_day: int) -> int:
        """Last fully complete day. Clamped to the current day at day 0."""
        if current_day == 0:
            return current_day
        return current_day - 1

    def epoch_window(self, day: int) -> Tuple[int, int]:
        """Inclusive (first_epoch, last_epoch) bounds of a day."""
        first_epoch = day * self.epochs_per_day
        return first_epoch, first_epoch + self.epochs_per_day - 1

    def __repr__(self):
        return f"DayClock(epochs_per_day={self.epochs_per_day})"


def parse_day_range(value: str) -> range:
    """
    Parse a ``first-last`` argument into the inclusive range of days.

    Raises InvalidDayRangeError for anything other than two non-negative
    integers separated by a single dash with ``first <= last``.
    """
    parts = value.split("-")
    if len(parts) != 2:
        raise InvalidDayRangeError(f"invalid day range {value!r}, expected first-last")

    first_raw, last_raw = (part.strip() for part in parts)
    if not first_raw.isdecimal() or not last_raw.isdecimal():
        raise InvalidDayRangeError(f"invalid day range {value!r}, days must be non-negative integers")

    first_day, last_day = int(first_raw), int(last_raw)
    if first_day > last_day:
        raise InvalidDayRangeError(f"invalid day range {value!r}, first day is after last day")

    return range(first_day, last_day + 1)
