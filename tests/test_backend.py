from datetime import datetime, timedelta, timezone

import pytest

from backend import app


@pytest.fixture
def client(clean_db):
    return app.test_client()


def test_health_and_ready(client):
    assert client.get('/health').get_json() == {'status': 'ok'}
    r = client.get('/ready')
    assert r.status_code == 200
    assert r.get_json()['ready'] is True


def test_submit_flow(client):
    r = client.post('/submit', json={
        'challenge_id': 'fe-001', 'type': 'CODE', 'difficulty': 3, 'score': 100,
        'hints_used': 0, 'category': 'frontend', 'user_code': 'const x = 1;',
    })
    assert r.status_code == 200
    j = r.get_json()
    assert j['xp_awarded'] == 234
    assert j['leveled_up'] is True
    assert j['level']['title'] == 'Junior Developer'
    assert j['progress']['status'] == 'completed'
    assert j['progress']['interval'] == 1
    assert j['profile']['xp'] == 234
    assert j['profile']['current_streak'] == 1
    assert j['profile']['xp_progress'] == {'current': 34, 'needed': 300, 'percentage': 11}
    keys = [a['key'] for a in j['unlocked_achievements']]
    assert 'first_challenge' in keys and 'perfect_score' in keys

    # second submission: no first-attempt bonus, achievements are not unlocked twice
    r = client.post('/submit', json={'challenge_id': 'fe-001', 'type': 'CODE', 'difficulty': 3, 'score': 100})
    j = r.get_json()
    assert j['xp_awarded'] == 180
    assert 'unlocked_achievements' not in j
    assert j['progress']['attempts'] == 2
    assert j['progress']['interval'] == 3

    r = client.get('/profile')
    assert r.get_json()['xp'] == 414
    assert r.get_json()['total_challenges_completed'] == 1

    r = client.get('/progress/fe-001')
    assert r.status_code == 200
    p = r.get_json()
    # the stored answer is the one from the latest submission
    assert p['user_code'] == ''
    assert p['due'] is False


def test_review_queue_lists_due_items(client):
    client.post('/submit', json={'challenge_id': 'algo-1', 'type': 'EXPLAIN', 'difficulty': 2, 'score': 30})
    r = client.get('/review_queue')
    assert r.get_json()['total'] == 0
    later = (datetime.now(timezone.utc) + timedelta(days=2)).isoformat()
    r = client.get('/review_queue', query_string={'now': later})
    j = r.get_json()
    assert j['total'] == 1
    assert j['items'][0]['challenge_id'] == 'algo-1'
    assert client.get('/review_queue?now=soon').status_code == 400


def test_submit_rejects_bad_input(client):
    assert client.post('/submit', json={'type': 'CODE', 'score': 10}).status_code == 400
    r = client.post('/submit', json={'challenge_id': 'x', 'type': 'POEM', 'score': 10})
    assert r.status_code == 400
    assert 'unknown challenge type' in r.get_json()['error']
    assert client.post('/submit', data='not json').status_code == 400


def test_missing_progress_is_404(client):
    assert client.get('/progress/unknown').status_code == 404


def test_achievements_and_levels(client):
    j = client.get('/api/achievements').get_json()
    assert j['total'] == 20
    assert j['unlocked'] == 0
    assert all(a['unlocked_at'] is None for a in j['achievements'])
    levels = client.get('/levels').get_json()['levels']
    assert len(levels) == 12
    assert levels[-1]['max_xp'] is None


def test_submit_rejects_non_finite_score(client):
    # Infinity is accepted by the JSON parser and must still be a 400
    r = client.post('/submit', data='{"challenge_id": "x", "type": "CODE", "score": Infinity}',
                    content_type='application/json')
    assert r.status_code == 400
    assert 'finite' in r.get_json()['error']


def test_submit_accepts_js_timestamp(client):
    r = client.post('/submit', json={
        'challenge_id': 'be-7', 'type': 'DEBUG', 'difficulty': 2, 'score': 70,
        'timestamp': '2024-04-01T03:00:00.000Z', 'isFirstAttempt': 'false',
    })
    assert r.status_code == 200
    j = r.get_json()
    # no first-attempt bonus: 70 * 0.8 * 1.2
    assert j['xp_awarded'] == 67
    assert j['progress']['attempts'] == 1


def test_review_queue_accepts_z_and_unencoded_offset(client):
    client.post('/submit', json={'challenge_id': 'algo-2', 'type': 'EXPLAIN', 'difficulty': 2, 'score': 30})
    later = (datetime.now(timezone.utc) + timedelta(days=2)).strftime('%Y-%m-%dT%H:%M:%S')
    assert client.get('/review_queue?now=' + later + 'Z').get_json()['total'] == 1
    # a raw '+' in the query string arrives as a space
    assert client.get('/review_queue?now=' + later + '+00:00').get_json()['total'] == 1
