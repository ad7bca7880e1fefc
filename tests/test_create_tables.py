import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.join(ROOT, 'scripts'))

import create_tables  # noqa: E402


def test_create_tables_binds_db(clean_db):
    assert create_tables.main([]) == 0
    from models import db
    assert getattr(db, 'provider', None) is not None
