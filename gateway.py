"""Persistence gateway over the PonyORM models.

The gateway converts between Pony entities and the plain records in
`records.py`, so nothing outside this module needs an open db_session.
Every method runs in its own db_session (one transaction per call).
"""

import logging
from datetime import datetime, timezone

from pony.orm import db_session, select

from models import Progress, Profile, Achievement
from records import ProgressRecord, UserProfile
from sr import as_utc, review_priority
from xp import get_level_from_xp

logger = logging.getLogger('trainme.gateway')


def _iso(dt):
    return as_utc(dt).isoformat() if dt else None


def _to_record(p):
    return ProgressRecord(
        challenge_id=p.challenge_id,
        status=p.status,
        attempts=p.attempts or 0,
        best_score=p.best_score or 0,
        last_attempted=as_utc(p.last_attempted),
        ease_factor=p.ease_factor if p.ease_factor is not None else 2.5,
        interval=p.interval or 0,
        repetitions=p.repetitions or 0,
        next_review_date=as_utc(p.next_review_date),
        user_answer=p.user_answer or '',
        user_code=p.user_code or '',
        category=p.category,
        challenge_type=p.challenge_type,
    )


def _to_profile(u):
    return UserProfile(
        name=u.name,
        xp=u.xp or 0,
        level=u.level or 1,
        current_streak=u.current_streak or 0,
        longest_streak=u.longest_streak or 0,
        last_active_date=u.last_active_date,
        total_challenges_completed=u.total_challenges_completed or 0,
    )


class PonyGateway:
    """Load and save progress records and the user profile."""

    def load(self, challenge_id):
        with db_session:
            p = Progress.get(challenge_id=challenge_id)
            return _to_record(p) if p else None

    def save(self, record):
        fields = dict(
            status=record.status,
            attempts=record.attempts,
            best_score=record.best_score,
            last_attempted=_iso(record.last_attempted),
            ease_factor=float(record.ease_factor),
            interval=record.interval,
            repetitions=record.repetitions,
            next_review_date=_iso(record.next_review_date),
            user_answer=record.user_answer,
            user_code=record.user_code,
            category=record.category,
            challenge_type=record.challenge_type,
        )
        with db_session:
            p = Progress.get(challenge_id=record.challenge_id)
            if p:
                p.set(**fields)
            else:
                Progress(challenge_id=record.challenge_id, **fields)
        logger.debug('Saved progress challenge=%s status=%s interval=%s', record.challenge_id, record.status, record.interval)

    def save_submission(self, record, profile, achievement_keys=(), when=None):
        """Store a submission's record, profile and unlocks in one transaction.

        Nested db_session blocks join the outer one, so either all three
        writes are committed or none are.
        """
        with db_session:
            self.save(record)
            self.save_profile(profile)
            self.unlock_achievements(achievement_keys, when)

    def all_progress(self):
        with db_session:
            return [_to_record(p) for p in select(p for p in Progress)]

    def load_profile(self):
        """Return the singleton profile, creating the default one on first use."""
        with db_session:
            u = Profile.select().first()
            if not u:
                u = Profile(name='Engineer')
                logger.info('Created default user profile')
            return _to_profile(u)

    def save_profile(self, profile):
        # level is never authoritative on its own; always re-derive it
        level = get_level_from_xp(profile.xp).level
        with db_session:
            u = Profile.select().first()
            if not u:
                u = Profile(name=profile.name)
            u.set(
                name=profile.name,
                xp=profile.xp,
                level=level,
                current_streak=profile.current_streak,
                longest_streak=profile.longest_streak,
                last_active_date=profile.last_active_date,
                total_challenges_completed=profile.total_challenges_completed,
            )

    def review_queue(self, now=None):
        """Return records due for review, most overdue first."""
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        due = [r for r in self.all_progress() if r.next_review_date and r.next_review_date <= now]
        due.sort(key=lambda r: review_priority(r.next_review_date, now))
        return due

    def unlocked_achievements(self):
        with db_session:
            return {a.key: a.unlocked_at for a in select(a for a in Achievement)}

    def unlock_achievements(self, keys, when=None):
        """Persist unlocks, skipping keys that are already stored.

        Returns the keys that were newly stored.
        """
        stamp = _iso(when) or datetime.now(timezone.utc).isoformat()
        added = []
        with db_session:
            for key in keys:
                if Achievement.get(key=key):
                    continue
                Achievement(key=key, unlocked_at=stamp)
                added.append(key)
        return added
