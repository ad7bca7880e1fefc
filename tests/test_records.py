from datetime import datetime, timezone

import pytest

from records import SubmissionEvent, ProgressRecord


def test_event_from_dict_clamps_ranges():
    e = SubmissionEvent.from_dict({
        'challenge_id': 'fe-001', 'type': 'code', 'difficulty': 9,
        'score': 140, 'hints_used': -2,
    })
    assert e.challenge_type == 'CODE'
    assert e.difficulty == 5
    assert e.score == 100
    assert e.hints_used == 0
    assert e.is_first_attempt is None
    assert e.timestamp.tzinfo is not None


def test_event_from_dict_accepts_camel_case():
    e = SubmissionEvent.from_dict({
        'challengeId': 'algo-3', 'type': 'DEBUG', 'difficulty': 0, 'score': '72.6',
        'hintsUsed': 2, 'isFirstAttempt': False, 'timestamp': '2024-01-02T03:04:05',
        'category': 'Algorithms', 'userCode': 'print(1)',
    })
    assert e.challenge_id == 'algo-3'
    assert e.difficulty == 1
    assert e.score == 73
    assert e.hints_used == 2
    assert e.is_first_attempt is False
    assert e.timestamp == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert e.category == 'algorithms'
    assert e.user_code == 'print(1)'


@pytest.mark.parametrize('data', [
    {'type': 'CODE', 'score': 50},
    {'challenge_id': 'x', 'type': 'ESSAY', 'score': 50},
    {'challenge_id': 'x', 'type': 'CODE', 'score': 'lots'},
    {'challenge_id': 'x', 'type': 'CODE', 'score': 50, 'timestamp': 'yesterday'},
    {'challenge_id': 'x', 'type': 'CODE', 'score': 50, 'category': 'cooking'},
])
def test_event_from_dict_rejects_bad_input(data):
    with pytest.raises(ValueError):
        SubmissionEvent.from_dict(data)


def test_progress_defaults_and_to_dict():
    r = ProgressRecord(challenge_id='be-1')
    assert (r.status, r.ease_factor, r.interval, r.repetitions, r.attempts) == ('not_started', 2.5, 0, 0, 0)
    d = r.to_dict()
    assert d['next_review_date'] is None
    assert d['last_attempted'] is None


@pytest.mark.parametrize('field', ['score', 'difficulty', 'hints_used', 'duration_seconds'])
@pytest.mark.parametrize('value', [float('inf'), float('-inf'), float('nan'), 'Infinity', '1e400'])
def test_event_from_dict_rejects_non_finite_numbers(field, value):
    data = {'challenge_id': 'x', 'type': 'CODE', 'score': 50}
    data[field] = value
    with pytest.raises(ValueError):
        SubmissionEvent.from_dict(data)


def test_event_from_dict_reads_js_timestamps():
    e = SubmissionEvent.from_dict({
        'challenge_id': 'x', 'type': 'CODE', 'score': 50,
        'timestamp': '2024-04-01T10:00:00.000Z',
    })
    assert e.timestamp == datetime(2024, 4, 1, 10, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize('value, expected', [
    (True, True), (False, False), (1, True), (0, False),
    ('true', True), ('False', False), ('no', False), ('1', True), (None, None),
])
def test_event_from_dict_parses_first_attempt_flag(value, expected):
    e = SubmissionEvent.from_dict({'challenge_id': 'x', 'type': 'CODE', 'score': 50, 'is_first_attempt': value})
    assert e.is_first_attempt is expected


def test_event_from_dict_rejects_unclear_first_attempt_flag():
    with pytest.raises(ValueError):
        SubmissionEvent.from_dict({'challenge_id': 'x', 'type': 'CODE', 'score': 50, 'is_first_attempt': 'maybe'})
