"""Submission pipeline: turn a challenge submission into stored progress.

`SubmissionService` is constructed once at startup with a persistence
gateway and a clock and then shared. It serializes submissions per
challenge id so the read-modify-write of a progress record never
interleaves with another submission for the same challenge.
"""

import logging
import threading
from collections import namedtuple
from dataclasses import replace
from datetime import datetime, timezone

from badges import achievement_updates, completion_stats
from mastery import next_status, is_first_completion, update_streak
from records import ProgressRecord
from sr import calculate_sm2, score_to_quality
from xp import calculate_xp, get_level_from_xp

logger = logging.getLogger('trainme.submissions')

SubmissionResult = namedtuple('SubmissionResult', ['progress', 'profile', 'xp_awarded', 'level', 'leveled_up', 'unlocked'])


def utc_clock():
    return datetime.now(timezone.utc)


def apply_submission(prior, profile, event, now):
    """Compute the progress record and profile that follow a submission.

    Pure: `prior` (None for a first submission) and `profile` are not
    modified; new records are returned as (progress, profile, xp_awarded).
    """
    existing = prior or ProgressRecord(challenge_id=event.challenge_id)
    if event.is_first_attempt is None:
        first_attempt = prior is None or existing.attempts == 0
    else:
        first_attempt = event.is_first_attempt

    gained = calculate_xp(event.challenge_type, event.difficulty, event.score, first_attempt, event.hints_used)
    sm2 = calculate_sm2(
        score_to_quality(event.score),
        existing.ease_factor,
        existing.interval,
        existing.repetitions,
        now=now,
    )
    status = next_status(event.score, existing.attempts)

    progress = replace(
        existing,
        status=status,
        attempts=existing.attempts + 1,
        best_score=max(existing.best_score, event.score),
        last_attempted=event.timestamp or now,
        user_answer=event.user_answer,
        user_code=event.user_code,
        ease_factor=sm2.ease_factor,
        interval=sm2.interval,
        repetitions=sm2.repetitions,
        next_review_date=sm2.next_review_date,
        category=event.category or existing.category,
        challenge_type=event.challenge_type,
    )

    xp_total = profile.xp + gained
    updated = replace(profile, xp=xp_total, level=get_level_from_xp(xp_total).level)
    updated = update_streak(updated, now)
    if is_first_completion(prior.status if prior else None, status):
        updated = replace(updated, total_challenges_completed=updated.total_challenges_completed + 1)
    return progress, updated, gained


class SubmissionService:

    def __init__(self, gateway, clock=utc_clock):
        self.gateway = gateway
        self.clock = clock
        self._locks = {}
        self._locks_guard = threading.Lock()
        # the profile is shared by every challenge, so XP and streak updates
        # from different challenges are serialized as well
        self._profile_lock = threading.Lock()

    def _lock_for(self, challenge_id):
        with self._locks_guard:
            lock = self._locks.get(challenge_id)
            if lock is None:
                lock = self._locks[challenge_id] = threading.Lock()
            return lock

    def submit(self, event):
        """Score a submission and persist the outcome.

        Everything is computed before the first write. If the gateway
        raises, the exception propagates and no in-memory state has been
        changed.
        """
        with self._lock_for(event.challenge_id), self._profile_lock:
            now = self.clock()
            prior = self.gateway.load(event.challenge_id)
            profile = self.gateway.load_profile()
            progress, updated, gained = apply_submission(prior, profile, event, now)

            others = [r for r in self.gateway.all_progress() if r.challenge_id != progress.challenge_id]
            stats = completion_stats(others + [progress])
            already = self.gateway.unlocked_achievements()
            unlocked = [k for k in achievement_updates(updated, progress, event, stats) if k not in already]

            self.gateway.save_submission(progress, updated, unlocked, now)

        level = get_level_from_xp(updated.xp)
        leveled_up = level.level > get_level_from_xp(profile.xp).level
        logger.info('Submission challenge=%s score=%s status=%s xp=+%s interval=%sd',
                    event.challenge_id, event.score, progress.status, gained, progress.interval)
        if leveled_up:
            logger.info('Level up: %s (%s)', level.level, level.title)
        if unlocked:
            logger.info('Unlocked achievements: %s', ', '.join(unlocked))
        return SubmissionResult(progress, updated, gained, level, leveled_up, unlocked)
