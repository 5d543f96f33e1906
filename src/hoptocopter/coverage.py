import math
from typing import Iterable

from hoptocopter.profile import CoverageBlock, Profile

DEFAULT_COLOR = "blue"


def _percent(blocks: Iterable[CoverageBlock]) -> float:
    total = covered = 0
    for b in blocks:
        total += b.num_stmt
        if b.count > 0:
            covered += b.num_stmt
    if total == 0:
        return 0.0
    return covered / total * 100


def percent_covered(profile: Profile) -> float:
    """Share of the profile's statements executed at least once, in percent.

    A profile without statements is reported as 0.0 rather than NaN.
    """
    return _percent(profile.blocks)


def report_percent(profiles: Iterable[Profile]) -> float:
    """Statement-weighted coverage across every file of a parsed report."""
    return _percent(b for p in profiles for b in p.blocks)


def round_percent(value: float) -> int:
    # round() is half-to-even, the same as Go's %.0f
    return round(value)


def status_color(pct) -> str:
    """Map a whole coverage percentage to a badge color.

    Accepts an int or a numeric string. Values that fall in no bucket
    (NaN, unparsable strings) get the default color.
    """
    try:
        pct = float(pct)
    except (TypeError, ValueError):
        return DEFAULT_COLOR
    if math.isnan(pct):
        return DEFAULT_COLOR

    if pct <= 30:
        return "red"
    if 30 < pct <= 75:
        return "yellow"
    if pct > 75:
        return "green"
    return DEFAULT_COLOR
