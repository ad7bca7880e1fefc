import os
from pony.orm import Database, Required, Optional
from datetime import datetime, timezone

"""PonyORM models and initialization.

Defines Progress, Profile and Achievement entities. The init_db helper binds
to Postgres when configured through the environment and otherwise to a
local sqlite file.
"""

db = Database()


class Progress(db.Entity):
    challenge_id = Required(str, unique=True)
    status = Required(str, default='not_started')
    attempts = Optional(int, default=0)
    best_score = Optional(int, default=0)
    # Timestamps are stored as ISO-8601 strings with timezone info. sqlite
    # drops tzinfo from DATETIME columns, and PonyORM raises
    # UnrepeatableReadError when an aware in-memory value is re-read naive.
    last_attempted = Optional(str, nullable=True)
    next_review_date = Optional(str, nullable=True)
    # spaced repetition fields
    ease_factor = Optional(float, default=2.5)
    interval = Optional(int, default=0)  # days
    repetitions = Optional(int, default=0)
    user_answer = Optional(str, nullable=True)
    user_code = Optional(str, nullable=True)
    # metadata of the latest submission, used for completion stats
    category = Optional(str, nullable=True)
    challenge_type = Optional(str, nullable=True)


class Profile(db.Entity):
    name = Required(str, default='Engineer')
    xp = Optional(int, default=0)
    # level is derived from xp on every save; stored for convenience only
    level = Optional(int, default=1)
    current_streak = Optional(int, default=0)
    longest_streak = Optional(int, default=0)
    # ISO date string (YYYY-MM-DD)
    last_active_date = Optional(str, nullable=True)
    total_challenges_completed = Optional(int, default=0)


class Achievement(db.Entity):
    key = Required(str, unique=True)
    unlocked_at = Optional(str, default=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self):
        """Return a lightweight serializable dict for JSON APIs."""
        return {
            'id': self.id,
            'key': self.key,
            'unlocked_at': self.unlocked_at,
        }


def _sqlite_path():
    """Resolve the sqlite file used when no Postgres configuration is present.

    DATABASE_FILE wins; otherwise the file lives next to this module so web
    and script processes resolve the same absolute path. ':memory:' is
    mapped to a shared file under .run/ because sqlite gives every
    connection its own in-memory DB.
    """
    repo_root = os.path.dirname(os.path.abspath(__file__))
    requested_path = os.environ.get('DATABASE_FILE') or os.path.join(repo_root, 'db.sqlite')
    if requested_path == ':memory:':
        shared_dir = os.path.join(repo_root, '.run')
        os.makedirs(shared_dir, exist_ok=True)
        requested_path = os.path.join(shared_dir, 'pytest_db.sqlite')
    parent = os.path.dirname(requested_path)
    if parent and not os.path.exists(parent):
        os.makedirs(parent, exist_ok=True)
    return requested_path


def init_db(path=None, create_tables=True):
    # If the database is already bound, only make sure mappings exist for
    # this process (idempotent).
    if getattr(db, 'provider', None) is not None:
        if getattr(db, 'schema', None) is None:
            db.generate_mapping(create_tables=create_tables)
        return db

    # Priority 1: DATABASE_URL (Postgres URI)
    database_url = os.environ.get('DATABASE_URL')
    if database_url:
        db.bind(provider='postgres', dsn=database_url)

    # Priority 2: explicit PG env vars (PGHOST/PGPORT/PGUSER/PGPASSWORD/PGDATABASE)
    if getattr(db, 'provider', None) is None:
        pg_host = os.environ.get('PGHOST')
        pg_db = os.environ.get('PGDATABASE')
        if pg_host and pg_db:
            pg_port = os.environ.get('PGPORT', '5432')
            pg_user = os.environ.get('PGUSER', os.environ.get('POSTGRES_USER', 'postgres'))
            pg_password = os.environ.get('PGPASSWORD', os.environ.get('POSTGRES_PASSWORD', ''))
            dsn = f"postgresql://{pg_user}:{pg_password}@{pg_host}:{pg_port}/{pg_db}"
            db.bind(provider='postgres', dsn=dsn)

    # Priority 3: sqlite
    if getattr(db, 'provider', None) is None:
        db.bind('sqlite', filename=path or _sqlite_path(), create_db=True)

    db.generate_mapping(create_tables=create_tables)
    return db
