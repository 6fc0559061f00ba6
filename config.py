import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _database_url():
    """DATABASE_URL wins; VITE_DATABASE_URL is what the old frontend build exported."""
    url = os.environ.get('DATABASE_URL') or os.environ.get('VITE_DATABASE_URL')
    if url and url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    """Base configuration shared across all environments."""
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_recycle": 300,
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 10,
        "pool_timeout": 30,
    }
    PERMANENT_SESSION_LIFETIME = timedelta(hours=8)
    JSON_SORT_KEYS = False

    # CORS: the SPA is served from another origin
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',') if o.strip()]

    # Accessor layer
    DB_RETRY_ATTEMPTS = int(os.environ.get('DB_RETRY_ATTEMPTS', 3))

    # Redemption codes
    REDEMPTION_CODE_LENGTH = 10
    REDEMPTION_CODE_EXPIRY_DAYS = 30
    REDEMPTION_CODE_BULK_LIMIT = 500

    PASSWORD_HASH_METHOD = 'scrypt'
    PASSWORD_MIN_LENGTH = 6

    # 500 responses never carry exception text unless this is on
    EXPOSE_ERROR_DETAILS = False

    LOG_DIR = os.environ.get('LOG_DIR', os.path.join(BASE_DIR, 'logs'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development environment configuration."""
    DEBUG = True
    EXPOSE_ERROR_DETAILS = True
    SQLALCHEMY_DATABASE_URI = _database_url() or f'sqlite:///{os.path.join(BASE_DIR, "loyalty.db")}'
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}


class ProductionConfig(Config):
    """Production environment configuration. DATABASE_URL is mandatory."""
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _database_url()

    SECRET_KEY = os.environ.get('SECRET_KEY')

    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class TestingConfig(Config):
    """Testing environment configuration."""
    TESTING = True
    SECRET_KEY = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}  # SQLite doesn't use the prod pool settings
    SESSION_COOKIE_SECURE = False
    LOG_DIR = None


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
