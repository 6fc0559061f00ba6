"""
Standalone schema bootstrap, for hosts where the flask CLI isn't handy:

    DATABASE_URL=postgresql://... python setup_tables.py

Safe to re-run: existing tables and constraints are left alone.
"""
import os
import sys

from loyaltyhub import create_app
from loyaltyhub.schema import bootstrap_schema


def main():
    app = create_app(os.environ.get('FLASK_ENV', 'production'))
    with app.app_context():
        actions = bootstrap_schema()
    for action in actions:
        print(f"✅ {action}")
    if not actions:
        print("ℹ️  Schema already up to date.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
