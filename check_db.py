"""
Connectivity check: lists every table with its row count.

    DATABASE_URL=postgresql://... python check_db.py
"""
import os
import sys

from sqlalchemy import inspect, select, func, table
from sqlalchemy.exc import SQLAlchemyError

from loyaltyhub import create_app, db


def main():
    app = create_app(os.environ.get('FLASK_ENV', 'development'))
    with app.app_context():
        try:
            names = sorted(inspect(db.engine).get_table_names())
            with db.engine.connect() as conn:
                for name in names:
                    count = conn.execute(select(func.count()).select_from(table(name))).scalar()
                    print(f"{name:<22} {count:>8}")
        except SQLAlchemyError as e:
            print(f"\n❌ Database check failed: {e}")
            return 1
    print(f"\n✅ {len(names)} tables reachable.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
