"""
Severity Classifier

Maps a report count to a severity tier. The same thresholds are used for
heat map regions and for defaulter profiles so both views agree.
"""

from ..schemas import Severity

# (minimum count, tier), highest first
SEVERITY_THRESHOLDS: tuple[tuple[int, Severity], ...] = (
    (40, Severity.CRITICAL),
    (20, Severity.HIGH),
    (10, Severity.MEDIUM),
)


def classify_severity(count: int) -> Severity:
    """
    Classify a report count.

    >= 40 critical, >= 20 high, >= 10 medium, anything else low.
    Negative counts are not meaningful and classify as low.
    """
    for minimum, tier in SEVERITY_THRESHOLDS:
        if count >= minimum:
            return tier
    return Severity.LOW
