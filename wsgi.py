import os

from loyaltyhub import create_app
from loyaltyhub.schema import bootstrap_schema

config_name = os.environ.get('FLASK_ENV', 'production')
app = create_app(config_name)

# ── Schema bootstrap on startup ──
# Idempotent: creates missing tables, patches legacy Postgres schemas
if os.environ.get('BOOTSTRAP_SCHEMA_ON_START', '1') == '1':
    with app.app_context():
        bootstrap_schema()

if __name__ == "__main__":
    app.run()
