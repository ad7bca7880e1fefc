"""Flask web application for the TrainMe progress core.

This module exposes the submission pipeline over a small JSON API:
submitting a scored challenge attempt (which updates spaced repetition,
XP, level, streak and achievements), reading the profile and progress
records, and listing the review queue and achievement gallery.

The app uses PonyORM for persistence through `gateway.PonyGateway`. The
submission service is built once here and shared by every request.
"""

from flask import Flask, jsonify, request
from pony.orm import db_session
import os
from datetime import datetime, timezone
from dotenv import load_dotenv
from models import init_db, Progress
from badges import get_achievement_meta, catalog
from gateway import PonyGateway
from submissions import SubmissionService
from records import SubmissionEvent
from sr import is_due_for_review, parse_iso
from xp import LEVELS, get_level_from_xp, get_xp_progress

# load .env if present
load_dotenv()

import logging

# named logger for the application
logger = logging.getLogger('trainme')


def _configure_logging():
    # Allow explicit override via environment variable LOG_LEVEL or TRAINME_LOG_LEVEL
    env_level = os.environ.get('LOG_LEVEL') or os.environ.get('TRAINME_LOG_LEVEL')
    is_dev = (os.environ.get('FLASK_ENV') == 'development') or (os.environ.get('FLASK_DEBUG') == '1')
    if env_level:
        requested = getattr(logging, env_level.strip().upper(), None)
        if not isinstance(requested, int):
            # fallback to INFO if the provided value is invalid
            requested = logging.INFO
    else:
        requested = logging.DEBUG if is_dev else logging.INFO

    # Never allow DEBUG logging in production. If DEBUG was explicitly requested
    # but we're not in development mode, downgrade to INFO and say so.
    suppressed_debug = False
    if not is_dev and requested == logging.DEBUG:
        requested = logging.INFO
        suppressed_debug = True
    if not logger.handlers:
        ch = logging.StreamHandler()
        ch.setLevel(requested)
        fmt = logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s')
        ch.setFormatter(fmt)
        logger.addHandler(ch)
    logger.setLevel(requested)
    if suppressed_debug:
        logger.warning('DEBUG logging was requested via LOG_LEVEL but suppressed because FLASK_ENV is not development')


def json_error(message, code=400):
    return jsonify({'error': message}), code


def _service():
    return app.config['SUBMISSION_SERVICE']


def _level_dict(info):
    return {
        'level': info.level,
        'title': info.title,
        'min_xp': info.min_xp,
        # JSON has no infinity; the top level is open-ended
        'max_xp': None if info.max_xp == float('inf') else info.max_xp,
    }


def _profile_dict(profile):
    d = profile.to_dict()
    d['level_info'] = _level_dict(get_level_from_xp(profile.xp))
    d['xp_progress'] = get_xp_progress(profile.xp)
    return d


app = Flask(__name__)
app.config['SUBMISSION_SERVICE'] = SubmissionService(PonyGateway())

# Configure logging early
_configure_logging()


@app.route('/health')
def health():
    # Simple health endpoint for container healthchecks. Keep lightweight.
    return jsonify({'status': 'ok'}), 200


@app.route('/ready')
def ready():
    """Readiness probe: check DB connectivity.

    Returns 200 when the database is reachable, 503 otherwise.
    """
    try:
        with db_session:
            Progress.select()[:1]
    except Exception as e:
        logger.error('Readiness DB check failed: %s', e)
        return jsonify({'ready': False, 'reason': 'db-unavailable'}), 503
    return jsonify({'ready': True}), 200


@app.route('/submit', methods=['POST'])
def submit():
    """Record a scored challenge attempt.

    Request JSON: { 'challenge_id', 'type', 'difficulty', 'score',
    'hints_used', optional 'is_first_attempt', 'timestamp', 'category',
    'duration_seconds', 'user_answer', 'user_code' }
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return json_error('json body required')
    try:
        event = SubmissionEvent.from_dict(data)
    except ValueError as e:
        return json_error(str(e))
    try:
        result = _service().submit(event)
    except Exception:
        logger.exception('Failed to store submission for challenge=%s', event.challenge_id)
        return json_error('submission-failed', 500)
    resp = {
        'xp_awarded': result.xp_awarded,
        'progress': result.progress.to_dict(),
        'profile': _profile_dict(result.profile),
        'level': _level_dict(result.level),
        'leveled_up': result.leveled_up,
    }
    # expose newly unlocked achievements explicitly so the frontend can
    # show a modal only when something was earned by this submission
    if result.unlocked:
        resp['unlocked_achievements'] = [dict(get_achievement_meta(k), key=k) for k in result.unlocked]
    return jsonify(resp)


@app.route('/profile')
def profile():
    return jsonify(_profile_dict(_service().gateway.load_profile()))


@app.route('/progress/<path:challenge_id>')
def progress(challenge_id):
    record = _service().gateway.load(challenge_id)
    if not record:
        return json_error('progress not found', 404)
    d = record.to_dict()
    d['due'] = is_due_for_review(record.next_review_date)
    return jsonify(d)


@app.route('/review_queue')
def review_queue():
    """Return challenges due for review, most overdue first.

    Optional query param `now` (ISO-8601) evaluates the queue at a given time.
    A trailing Z is accepted, as is an offset whose unencoded + arrived as a space.
    """
    now = request.args.get('now')
    if now:
        try:
            now = parse_iso(now)
        except ValueError:
            return json_error('now must be ISO-8601')
    else:
        now = datetime.now(timezone.utc)
    items = [r.to_dict() for r in _service().gateway.review_queue(now)]
    return jsonify({'total': len(items), 'items': items})


@app.route('/api/achievements')
def api_achievements():
    unlocked = _service().gateway.unlocked_achievements()
    items = []
    for key, meta in catalog().items():
        d = dict(meta, key=key, unlocked_at=unlocked.get(key))
        items.append(d)
    return jsonify({'achievements': items, 'unlocked': len(unlocked), 'total': len(items)})


@app.route('/levels')
def levels():
    return jsonify({'levels': [_level_dict(info) for info in LEVELS]})


if __name__ == '__main__':
    # Initialize DB for development runs
    init_db()
    host = os.environ.get('FLASK_HOST') or os.environ.get('HOST') or '127.0.0.1'
    port = int(os.environ.get('FLASK_PORT') or os.environ.get('PORT') or 5000)
    debug = os.environ.get('FLASK_DEBUG', '1')
    app.run(host=host, port=port, debug=(debug == '1'))
