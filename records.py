"""In-memory value types passed between the scheduling core and storage.

Records are plain dataclasses. Core functions never mutate them; updates
are produced with `dataclasses.replace` so a discarded result leaves the
caller's copies untouched.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sr import parse_iso
from xp import CHALLENGE_TYPES, DIFFICULTY_MULTIPLIER

NOT_STARTED = 'not_started'
IN_PROGRESS = 'in_progress'
COMPLETED = 'completed'
MASTERED = 'mastered'

STATUSES = (NOT_STARTED, IN_PROGRESS, COMPLETED, MASTERED)

CATEGORIES = ('frontend', 'backend', 'fullstack', 'algorithms', 'behavioral')


@dataclass(frozen=True)
class ProgressRecord:
    challenge_id: str
    status: str = NOT_STARTED
    attempts: int = 0
    best_score: int = 0
    last_attempted: Optional[datetime] = None
    ease_factor: float = 2.5
    interval: int = 0
    repetitions: int = 0
    next_review_date: Optional[datetime] = None
    user_answer: str = ''
    user_code: str = ''
    # challenge metadata of the latest submission, used for completion stats
    category: Optional[str] = None
    challenge_type: Optional[str] = None

    def to_dict(self):
        """Return a JSON-friendly dict (datetimes as ISO-8601 strings)."""
        return {
            'challenge_id': self.challenge_id,
            'status': self.status,
            'attempts': self.attempts,
            'best_score': self.best_score,
            'last_attempted': self.last_attempted.isoformat() if self.last_attempted else None,
            'ease_factor': self.ease_factor,
            'interval': self.interval,
            'repetitions': self.repetitions,
            'next_review_date': self.next_review_date.isoformat() if self.next_review_date else None,
            'user_answer': self.user_answer,
            'user_code': self.user_code,
            'category': self.category,
            'type': self.challenge_type,
        }


@dataclass(frozen=True)
class UserProfile:
    name: str = 'Engineer'
    xp: int = 0
    level: int = 1
    current_streak: int = 0
    longest_streak: int = 0
    # ISO date (YYYY-MM-DD) of the last day with a submission
    last_active_date: Optional[str] = None
    total_challenges_completed: int = 0

    def to_dict(self):
        return {
            'name': self.name,
            'xp': self.xp,
            'level': self.level,
            'current_streak': self.current_streak,
            'longest_streak': self.longest_streak,
            'last_active_date': self.last_active_date,
            'total_challenges_completed': self.total_challenges_completed,
        }


def _finite(value):
    value = float(value)
    if not math.isfinite(value):
        raise ValueError('not a finite number: %r' % value)
    return value


_TRUE = ('true', '1', 'yes')
_FALSE = ('false', '0', 'no')


def _flag(value):
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError('is_first_attempt must be a boolean')


def _clamp(value, low, high=None):
    value = max(low, value)
    if high is not None:
        value = min(high, value)
    return value


@dataclass(frozen=True)
class SubmissionEvent:
    challenge_id: str
    challenge_type: str
    difficulty: int
    score: int
    hints_used: int = 0
    # None means "derive from the stored progress record"
    is_first_attempt: Optional[bool] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_answer: str = ''
    user_code: str = ''
    category: Optional[str] = None
    duration_seconds: Optional[float] = None

    @classmethod
    def from_dict(cls, data):
        """Build an event from untrusted input (e.g. a JSON request body).

        Numeric fields are clamped into their documented ranges: score to
        0-100, difficulty to 1-5 and hints to >= 0. Raises ValueError when
        the challenge id is missing, the challenge type is unknown or a
        number is not finite (JSON allows Infinity and NaN).
        """
        challenge_id = str(data.get('challenge_id') or data.get('challengeId') or '').strip()
        if not challenge_id:
            raise ValueError('challenge_id required')
        challenge_type = str(data.get('type') or '').strip().upper()
        if challenge_type not in CHALLENGE_TYPES:
            raise ValueError('unknown challenge type: %r' % data.get('type'))
        try:
            score = int(round(_finite(data.get('score', 0))))
            difficulty = int(_finite(data.get('difficulty', 3)))
            hints_used = int(_finite(data.get('hints_used', data.get('hintsUsed', 0)) or 0))
        except (TypeError, ValueError):
            raise ValueError('score, difficulty and hints_used must be finite numbers')
        difficulty = _clamp(difficulty, min(DIFFICULTY_MULTIPLIER), max(DIFFICULTY_MULTIPLIER))

        first = _flag(data.get('is_first_attempt', data.get('isFirstAttempt')))
        timestamp = data.get('timestamp')
        if timestamp:
            try:
                timestamp = parse_iso(timestamp)
            except ValueError:
                raise ValueError('timestamp must be ISO-8601')
            if timestamp.tzinfo is None:
                timestamp = timestamp.replace(tzinfo=timezone.utc)
        else:
            timestamp = datetime.now(timezone.utc)

        category = data.get('category')
        if category is not None:
            category = str(category).strip().lower()
            if category not in CATEGORIES:
                raise ValueError('unknown category: %r' % data.get('category'))

        duration = data.get('duration_seconds')
        try:
            duration = _finite(duration) if duration is not None else None
        except (TypeError, ValueError):
            raise ValueError('duration_seconds must be a finite number')

        return cls(
            challenge_id=challenge_id,
            challenge_type=challenge_type,
            difficulty=difficulty,
            score=_clamp(score, 0, 100),
            hints_used=_clamp(hints_used, 0),
            is_first_attempt=first,
            timestamp=timestamp,
            user_answer=str(data.get('user_answer') or data.get('userAnswer') or ''),
            user_code=str(data.get('user_code') or data.get('userCode') or ''),
            category=category,
            duration_seconds=duration,
        )
