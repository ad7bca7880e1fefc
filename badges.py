"""Achievement catalog and unlock rules.

The catalog is a simple in-memory dict keyed by achievement key. Each entry
has a title, a short description, an icon name and a category used to group
achievements in the gallery. `achievement_updates` decides which keys are
satisfied after a submission.
"""

from records import CATEGORIES, COMPLETED, MASTERED
from xp import CHALLENGE_TYPES

ACHIEVEMENTS = {
    # Completion milestones
    'first_challenge': {'title': 'First Steps', 'description': 'Complete your first challenge', 'icon': 'rocket', 'category': 'progress'},
    'ten_challenges': {'title': 'Getting Serious', 'description': 'Complete 10 challenges', 'icon': 'flame', 'category': 'progress'},
    'fifty_challenges': {'title': 'Dedicated Learner', 'description': 'Complete 50 challenges', 'icon': 'trophy', 'category': 'progress'},
    'hundred_challenges': {'title': 'Centurion', 'description': 'Complete 100 challenges', 'icon': 'crown', 'category': 'progress'},

    # Day streaks (calendar days with at least one submission)
    'streak_3': {'title': 'On a Roll', 'description': 'Maintain a 3-day streak', 'icon': 'zap', 'category': 'streak'},
    'streak_7': {'title': 'Weekly Warrior', 'description': 'Maintain a 7-day streak', 'icon': 'flame', 'category': 'streak'},
    'streak_30': {'title': 'Monthly Master', 'description': 'Maintain a 30-day streak', 'icon': 'star', 'category': 'streak'},

    # Mastery
    'perfect_score': {'title': 'Perfectionist', 'description': 'Get a perfect score on any challenge', 'icon': 'target', 'category': 'mastery'},
    'master_5': {'title': 'Pattern Recognition', 'description': 'Master 5 challenges', 'icon': 'brain', 'category': 'mastery'},
    'master_20': {'title': 'Deep Understanding', 'description': 'Master 20 challenges', 'icon': 'lightbulb', 'category': 'mastery'},
    'frontend_10': {'title': 'Frontend Specialist', 'description': 'Complete 10 frontend challenges', 'icon': 'monitor', 'category': 'mastery'},
    'backend_10': {'title': 'Backend Specialist', 'description': 'Complete 10 backend challenges', 'icon': 'server', 'category': 'mastery'},
    'algo_10': {'title': 'Algorithm Ace', 'description': 'Complete 10 algorithm challenges', 'icon': 'binary', 'category': 'mastery'},

    'speed_demon': {'title': 'Speed Demon', 'description': 'Complete a challenge in under 2 minutes', 'icon': 'timer', 'category': 'speed'},

    # Exploration
    'all_categories': {'title': 'Renaissance Engineer', 'description': 'Complete at least 1 challenge in every category', 'icon': 'compass', 'category': 'exploration'},
    'all_types': {'title': 'Jack of All Trades', 'description': 'Complete every challenge type', 'icon': 'layers', 'category': 'exploration'},
    'night_owl': {'title': 'Night Owl', 'description': 'Complete a challenge after midnight', 'icon': 'moon', 'category': 'exploration'},

    # Levels and sessions
    'interview_complete': {'title': 'Interview Ready', 'description': 'Complete a full mock interview session', 'icon': 'briefcase', 'category': 'progress'},
    'level_5': {'title': 'Senior Developer', 'description': 'Reach level 5', 'icon': 'award', 'category': 'progress'},
    'level_10': {'title': 'Staff Engineer', 'description': 'Reach level 10', 'icon': 'medal', 'category': 'progress'},
}

SPEED_DEMON_SECONDS = 120
# submissions stamped before this hour count as "after midnight"
NIGHT_OWL_HOUR = 5


def get_achievement_meta(key):
    return ACHIEVEMENTS.get(key, {'title': key, 'description': '', 'icon': 'trophy', 'category': 'progress'})


def catalog():
    return ACHIEVEMENTS


def completion_stats(records):
    """Summarize completion across progress records.

    Returns a dict with `completed` (completed or mastered), `mastered`,
    and per-category / per-type completed counts.
    """
    stats = {'completed': 0, 'mastered': 0, 'by_category': {}, 'by_type': {}}
    for r in records:
        if r.status not in (COMPLETED, MASTERED):
            continue
        stats['completed'] += 1
        if r.status == MASTERED:
            stats['mastered'] += 1
        if r.category:
            stats['by_category'][r.category] = stats['by_category'].get(r.category, 0) + 1
        if r.challenge_type:
            stats['by_type'][r.challenge_type] = stats['by_type'].get(r.challenge_type, 0) + 1
    return stats


def achievement_updates(profile, progress, event, stats):
    """Return achievement keys satisfied after a submission.

    Expects `profile`, `progress` and `stats` to already reflect the latest
    submission. Keys the user unlocked earlier are included too; the caller
    filters them against what is stored.
    """
    new = []
    done = int(profile.total_challenges_completed or 0)
    streak = int(profile.current_streak or 0)
    finished = progress.status in (COMPLETED, MASTERED)
    by_category = stats.get('by_category', {})
    by_type = stats.get('by_type', {})

    for key, threshold in (('first_challenge', 1), ('ten_challenges', 10),
                           ('fifty_challenges', 50), ('hundred_challenges', 100)):
        if done >= threshold:
            new.append(key)

    for days in (3, 7, 30):
        if streak >= days:
            new.append(f'streak_{days}')

    if event.score == 100:
        new.append('perfect_score')

    mastered = int(stats.get('mastered', 0))
    if mastered >= 5:
        new.append('master_5')
    if mastered >= 20:
        new.append('master_20')

    for key, category in (('frontend_10', 'frontend'), ('backend_10', 'backend'), ('algo_10', 'algorithms')):
        if by_category.get(category, 0) >= 10:
            new.append(key)

    if finished and event.duration_seconds is not None and event.duration_seconds < SPEED_DEMON_SECONDS:
        new.append('speed_demon')

    if all(by_category.get(c, 0) > 0 for c in CATEGORIES):
        new.append('all_categories')
    if all(by_type.get(t, 0) > 0 for t in CHALLENGE_TYPES):
        new.append('all_types')

    if finished and event.timestamp is not None and event.timestamp.hour < NIGHT_OWL_HOUR:
        new.append('night_owl')

    if profile.level >= 5:
        new.append('level_5')
    if profile.level >= 10:
        new.append('level_10')

    return new
