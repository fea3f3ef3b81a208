"""Configuration module for Flask application."""
import os
from datetime import timedelta
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _flag(name, default):
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')

    # Database (SQLite file by default)
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///retail_pos.db')
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = _flag('SQLALCHEMY_ECHO', 'false')

    # Point of sale
    TAX_RATE = os.getenv('TAX_RATE', '0.10')
    LOW_STOCK_THRESHOLD = int(os.getenv('LOW_STOCK_THRESHOLD', '10'))
    SESSION_LIFETIME_HOURS = int(os.getenv('SESSION_LIFETIME_HOURS', '8'))
    PERMANENT_SESSION_LIFETIME = timedelta(hours=SESSION_LIFETIME_HOURS)
    SEED_SAMPLE_PRODUCTS = _flag('SEED_SAMPLE_PRODUCTS', 'true')

    # Periodic save of the in-memory state
    AUTOSAVE_ENABLED = _flag('AUTOSAVE_ENABLED', 'true')
    AUTOSAVE_INTERVAL = int(os.getenv('AUTOSAVE_INTERVAL', '30'))  # seconds

    # Email configuration (low-stock notifications)
    MAIL_SERVER = os.getenv('SMTP_HOST', 'smtp.gmail.com')
    MAIL_PORT = int(os.getenv('SMTP_PORT', 587))
    MAIL_USE_TLS = True
    MAIL_USE_SSL = False
    MAIL_USERNAME = os.getenv('SMTP_USER') or ''
    MAIL_PASSWORD = os.getenv('SMTP_PASSWORD') or ''
    MAIL_DEFAULT_SENDER = (
        os.getenv('SMTP_FROM')
        or MAIL_USERNAME
        or 'no-reply@localhost'
    )
    MAIL_SUPPRESS_SEND = False

    # Backup object storage (AWS S3, DigitalOcean Spaces, MinIO).
    # Backups stay local when S3_BUCKET is empty.
    S3_ENDPOINT = os.getenv('S3_ENDPOINT', '')
    S3_ACCESS_KEY = os.getenv('S3_ACCESS_KEY', '')
    S3_SECRET_KEY = os.getenv('S3_SECRET_KEY', '')
    S3_BUCKET = os.getenv('S3_BUCKET', '')
    S3_REGION = os.getenv('S3_REGION', 'us-east-1')
    S3_BACKUP_PREFIX = os.getenv('S3_BACKUP_PREFIX', 'backups')

    # Error tracking (production only)
    SENTRY_DSN = os.getenv('SENTRY_DSN')


class TestConfig(Config):
    """In-memory database, no autosave, no mail, no CSRF."""

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    WTF_CSRF_ENABLED = False
    AUTOSAVE_ENABLED = False
    SEED_SAMPLE_PRODUCTS = False
    MAIL_SUPPRESS_SEND = True
    S3_BUCKET = ''
