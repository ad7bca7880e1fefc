"""Spaced repetition (SM-2 variant) helpers.

This module contains a compact implementation of the SM-2 algorithm used to
schedule challenge reviews, the mapping from a 0-100 performance score to an
SM-2 recall quality, and two small helpers used by the review queue.
"""

from collections import namedtuple
from datetime import datetime, timedelta, timezone

DEFAULT_EASE = 2.5
MIN_EASE = 1.3
PASSING_QUALITY = 3

SM2Result = namedtuple('SM2Result', ['ease_factor', 'interval', 'repetitions', 'next_review_date'])


def _utcnow():
    return datetime.now(timezone.utc)


def parse_iso(text):
    """Parse an ISO-8601 timestamp as sent by browsers and query strings.

    Accepts a trailing 'Z' (JS `toISOString`) and an offset whose '+' was
    decoded to a space in an unencoded URL. Raises ValueError otherwise.
    """
    text = str(text).strip()
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'
    # only when a time precedes it; '2024-04-01 10:00' is a plain datetime
    if len(text) > 6 and text[-6] == ' ' and text[-3] == ':' and ':' in text[:-6]:
        text = text[:-6] + '+' + text[-5:]
    return datetime.fromisoformat(text)


def as_utc(value):
    """Normalize an ISO string or datetime to an aware UTC datetime.

    Naive datetimes (sqlite drops tzinfo) are assumed to already be UTC.
    Returns None for empty values.
    """
    if not value:
        return None
    if isinstance(value, str):
        value = parse_iso(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def score_to_quality(score):
    """Convert a 0-100 score to an SM-2 quality rating (0-5)."""
    score = max(0, min(100, score))
    if score >= 95:
        return 5
    if score >= 80:
        return 4
    if score >= 60:
        return 3
    if score >= 40:
        return 2
    if score >= 20:
        return 1
    return 0


def sm2_update(repetitions, interval, ease, quality):
    """SM-2 algorithm update step. Quality 0-5.

    Returns a tuple: (new_repetitions, new_interval_days, new_ease_factor).
    If quality < 3 the algorithm treats the item as forgotten: the repetition
    count resets and the item comes back the next day. Otherwise the first
    two passes are scheduled 1 and 3 days out and later passes grow the
    previous interval by the previous ease factor.
    """
    if quality < PASSING_QUALITY:
        repetitions = 0
        interval = 1
    else:
        repetitions += 1
        if repetitions == 1:
            interval = 1
        elif repetitions == 2:
            interval = 3
        else:
            # uses the ease factor from before this review
            interval = int(round(interval * ease))
    # update ease factor; floor only, there is no ceiling
    ease = max(MIN_EASE, ease + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)))
    return repetitions, interval, ease


def calculate_sm2(quality, ease_factor=DEFAULT_EASE, interval=0, repetitions=0, now=None):
    """Schedule the next review of an item.

    `quality` is rounded and clamped into 0-5 before use. `now` anchors the
    next review date and defaults to the current UTC time; pass a fixed
    datetime to get reproducible schedules.
    """
    q = max(0, min(5, int(round(quality))))
    reps, new_interval, ease = sm2_update(repetitions, interval, ease_factor, q)
    anchor = as_utc(now) if now is not None else _utcnow()
    return SM2Result(
        ease_factor=ease,
        interval=new_interval,
        repetitions=reps,
        next_review_date=anchor + timedelta(days=new_interval),
    )


def is_due_for_review(next_review_date, now=None):
    # items that were never scheduled are not part of the review queue
    due = as_utc(next_review_date)
    if due is None:
        return False
    now = as_utc(now) if now is not None else _utcnow()
    return now >= due


def review_priority(next_review_date, now=None):
    """Return seconds until the item is due (negative means overdue).

    Lower values are more urgent, so sorting ascending puts the most
    overdue items first.
    """
    now = as_utc(now) if now is not None else _utcnow()
    return (as_utc(next_review_date) - now).total_seconds()
