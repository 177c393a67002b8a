from __future__ import annotations

from typing import Dict, List, Tuple


BUCKET_EXPIRED = "Expired"
BUCKET_URGENT = "0-90 days"
BUCKET_MEDIUM = "91-180 days"
BUCKET_LOW = ">180 days"

PRIORITY_EXPIRED = "expired"
PRIORITY_URGENT = "urgent"
PRIORITY_MEDIUM = "medium"
PRIORITY_LOW = "low"

URGENT_MAX_DAYS = 90
MEDIUM_MAX_DAYS = 180

# Chart order, furthest expiry first.
BUCKET_ORDER: List[str] = [BUCKET_LOW, BUCKET_MEDIUM, BUCKET_URGENT, BUCKET_EXPIRED]
PRIORITY_ORDER: List[str] = [PRIORITY_EXPIRED, PRIORITY_URGENT, PRIORITY_MEDIUM, PRIORITY_LOW]

PRIORITY_BY_BUCKET: Dict[str, str] = {
    BUCKET_EXPIRED: PRIORITY_EXPIRED,
    BUCKET_URGENT: PRIORITY_URGENT,
    BUCKET_MEDIUM: PRIORITY_MEDIUM,
    BUCKET_LOW: PRIORITY_LOW,
}

BUCKET_COLORS: Dict[str, str] = {
    BUCKET_EXPIRED: "#dc2626",
    BUCKET_URGENT: "#f59e0b",
    BUCKET_MEDIUM: "#d97706",
    BUCKET_LOW: "#059669",
}


def categorize(days_left: int) -> str:
    if days_left < 0:
        return BUCKET_EXPIRED
    if days_left <= URGENT_MAX_DAYS:
        return BUCKET_URGENT
    if days_left <= MEDIUM_MAX_DAYS:
        return BUCKET_MEDIUM
    return BUCKET_LOW


def priority_for_bucket(bucket: str) -> str:
    try:
        return PRIORITY_BY_BUCKET[bucket]
    except KeyError:
        raise ValueError(f"Unknown bucket: {bucket!r}") from None


def classify(days_left: int) -> Tuple[str, str]:
    """Return ``(bucket, priority)`` for a whole number of days until expiry."""
    bucket = categorize(int(days_left))
    return bucket, priority_for_bucket(bucket)
