import os
import sys
import pytest

# Prepend repository root to sys.path so tests import local modules before stdlib
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture(scope='session', autouse=True)
def ensure_clean_test_db():
    """Ensure the test SQLite DB is removed before and after the test session.

    Tests bind PonyORM to a shared file at .run/pytest_db.sqlite (unless
    DATABASE_FILE is already set); remove that file so each run starts fresh.
    """
    run_dir = os.path.join(ROOT, '.run')
    os.makedirs(run_dir, exist_ok=True)
    db_file = os.path.join(run_dir, 'pytest_db.sqlite')

    os.environ.setdefault('DATABASE_FILE', db_file)

    # remove stale DB before starting tests
    if os.path.exists(db_file):
        os.remove(db_file)

    yield

    # teardown: PonyORM may still hold the file open on some platforms
    try:
        if os.path.exists(db_file):
            os.remove(db_file)
    except OSError:
        pass


@pytest.fixture
def clean_db():
    """Bind the models and empty every table so a test sees a fresh store."""
    from pony.orm import db_session
    from models import init_db, Progress, Profile, Achievement

    init_db()
    with db_session:
        Progress.select().delete(bulk=True)
        Profile.select().delete(bulk=True)
        Achievement.select().delete(bulk=True)
    yield
