"""Bind the TrainMe models and create any missing tables.

Uses the same DATABASE_URL / PG* / DATABASE_FILE settings as the app.

Usage:
  python scripts/create_tables.py
"""

import os
import sys

# `python scripts/create_tables.py` puts scripts/ first on sys.path
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from models import init_db, db


def main(argv=None):
    init_db(create_tables=True)
    print('Tables ready. Pony provider:', getattr(db, 'provider', None))
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv[1:]))
