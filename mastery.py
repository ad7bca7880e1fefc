"""Challenge status transitions and calendar-day streaks."""

from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

from records import NOT_STARTED, IN_PROGRESS, COMPLETED, MASTERED

COMPLETION_SCORE = 60
MASTERY_SCORE = 95
# attempts that must precede a mastering submission
MASTERY_PRIOR_ATTEMPTS = 2


def next_status(score, prior_attempts):
    """Return the status earned by a submission.

    `prior_attempts` is the attempt count before this submission. Status is
    decided by the current score only; a previously mastered challenge that
    is resubmitted with a lower score drops back to completed/in_progress.
    """
    if score >= MASTERY_SCORE and prior_attempts >= MASTERY_PRIOR_ATTEMPTS:
        return MASTERED
    if score >= COMPLETION_SCORE:
        return COMPLETED
    return IN_PROGRESS


def is_first_completion(prior_status, new_status):
    """True when a challenge crosses the completion threshold.

    `prior_status` is None when the challenge had no progress record yet.
    """
    if new_status not in (COMPLETED, MASTERED):
        return False
    return prior_status in (None, NOT_STARTED, IN_PROGRESS)


def _as_date(value):
    if value is None:
        return datetime.now(timezone.utc).date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def update_streak(profile, today=None):
    """Return `profile` with its calendar-day streak advanced to `today`.

    - same day as the last activity: returned unchanged
    - the day after the last activity: streak + 1
    - after a gap (or with no previous activity): streak restarts at 1

    `today` may be a date, a datetime or an ISO date string and defaults to
    the current UTC date. The longest streak is kept in step.
    """
    today = _as_date(today)
    last = profile.last_active_date
    try:
        last_date = date.fromisoformat(last) if last else None
    except ValueError:
        last_date = None

    if last_date == today:
        # already active today; repeated calls must not compound
        return profile
    if last_date == today - timedelta(days=1):
        streak = (profile.current_streak or 0) + 1
    else:
        streak = 1
    return replace(
        profile,
        current_streak=streak,
        longest_streak=max(profile.longest_streak or 0, streak),
        last_active_date=today.isoformat(),
    )
