import re
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional

_INT_RE = re.compile(r"\d+")


class FrequencyKind(str, Enum):
    ONCE_DAILY = "once-daily"
    TWICE_DAILY = "twice-daily"
    EVERY_N_HOURS = "every-n-hours"
    WEEKLY = "weekly"
    AS_NEEDED = "as-needed"
    CUSTOM = "custom"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Frequency:
    kind: FrequencyKind
    hours: Optional[int] = None  # only for EVERY_N_HOURS

    def interval(self) -> timedelta:
        """Step used by the next-dose approximation. Anything not twice/every-N is daily."""
        if self.kind == FrequencyKind.TWICE_DAILY:
            return timedelta(hours=12)
        if self.kind == FrequencyKind.EVERY_N_HOURS and self.hours is not None:
            return timedelta(hours=self.hours)
        return timedelta(days=1)


def parse_frequency(raw: Optional[str]) -> Frequency:
    f = (raw or "").lower()

    # priority order matters: "twice daily" is twice, not daily
    if "twice" in f:
        return Frequency(FrequencyKind.TWICE_DAILY)
    if "daily" in f:
        return Frequency(FrequencyKind.ONCE_DAILY)
    if "every" in f:
        m = _INT_RE.search(f)
        if m:
            return Frequency(FrequencyKind.EVERY_N_HOURS, hours=int(m.group(0)))
    if "weekly" in f:
        return Frequency(FrequencyKind.WEEKLY)
    if "as-needed" in f or "as needed" in f or "prn" in f:
        return Frequency(FrequencyKind.AS_NEEDED)
    if "custom" in f:
        return Frequency(FrequencyKind.CUSTOM)
    return Frequency(FrequencyKind.UNKNOWN)
