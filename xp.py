"""XP awards and the level table.

XP is awarded per submission from a base value for the challenge type,
scaled by difficulty, score, first-attempt and hint usage. Cumulative XP
maps onto a fixed ladder of twelve levels.
"""

from collections import namedtuple

BASE_XP = {
    'CODE': 80,
    'EXPLAIN': 50,
    'DEBUG': 70,
    'REVIEW': 60,
    'DESIGN': 100,
    'SCENARIO': 150,
}

CHALLENGE_TYPES = tuple(BASE_XP)

DIFFICULTY_MULTIPLIER = {
    1: 0.6,
    2: 0.8,
    3: 1.0,
    4: 1.3,
    5: 1.6,
}

PERFECT_SCORE_BONUS = 1.5
FIRST_ATTEMPT_BONUS = 1.3
HINT_PENALTY = 0.15
MIN_HINT_MULTIPLIER = 0.5

# flat bonus shown for keeping a daily streak; not part of calculate_xp
STREAK_BONUS = 25

LevelInfo = namedtuple('LevelInfo', ['level', 'title', 'min_xp', 'max_xp'])

LEVELS = [
    LevelInfo(1, 'Apprentice Developer', 0, 200),
    LevelInfo(2, 'Junior Developer', 200, 500),
    LevelInfo(3, 'Junior Developer II', 500, 900),
    LevelInfo(4, 'Mid Developer', 900, 1500),
    LevelInfo(5, 'Mid Developer II', 1500, 2300),
    LevelInfo(6, 'Senior Developer', 2300, 3500),
    LevelInfo(7, 'Senior Developer II', 3500, 5000),
    LevelInfo(8, 'Staff Engineer', 5000, 7000),
    LevelInfo(9, 'Senior Staff Engineer', 7000, 10000),
    LevelInfo(10, 'Principal Engineer', 10000, 14000),
    LevelInfo(11, 'Distinguished Engineer', 14000, 20000),
    LevelInfo(12, 'Fellow Engineer', 20000, float('inf')),
]


def calculate_xp(challenge_type, difficulty, score, is_first_attempt, hints_used):
    """Compute XP gained for a submission.

    - base XP for the challenge type, scaled by the difficulty multiplier
    - score scales the award between 0.5x (score 0) and 1.5x (score 100)
    - a perfect score earns a further 1.5x on top of the score scaling
    - a first attempt earns 1.3x
    - each hint costs 15%, but the hint multiplier never drops below 0.5x

    Multipliers are applied in that order and the result is rounded once at
    the end. Inputs are expected to be validated by the caller.
    """
    xp = BASE_XP[challenge_type] * DIFFICULTY_MULTIPLIER[difficulty]
    xp *= 0.5 + score / 100
    if score == 100:
        xp *= PERFECT_SCORE_BONUS
    if is_first_attempt:
        xp *= FIRST_ATTEMPT_BONUS
    xp *= max(MIN_HINT_MULTIPLIER, 1 - hints_used * HINT_PENALTY)
    return int(round(xp))


def get_level_from_xp(xp):
    """Return the LevelInfo of the highest tier whose min_xp <= xp."""
    for info in reversed(LEVELS):
        if xp >= info.min_xp:
            return info
    return LEVELS[0]


def get_xp_progress(xp):
    """Return progress within the current level.

    Result is a dict with `current` (XP earned inside the level), `needed`
    (size of the level) and `percentage` (0-100). The top level has no upper
    bound, so it always reports 100% with `needed` equal to `current`.
    """
    info = get_level_from_xp(xp)
    current = xp - info.min_xp
    needed = info.max_xp - info.min_xp
    if needed == float('inf'):
        return {'current': current, 'needed': current, 'percentage': 100}
    return {'current': current, 'needed': needed, 'percentage': int(round(current / needed * 100))}
