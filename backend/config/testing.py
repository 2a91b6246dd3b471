"""Testing configuration."""
from datetime import timedelta

from .base import BaseConfig


class TestingConfig(BaseConfig):
    """Testing configuration class."""

    DEBUG = False
    TESTING = True
    SECRET_KEY = 'test-secret-key'

    # Database (in-memory SQLite for testing)
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'

    # JWT Configuration
    JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=30)

    # Rate Limiting (disabled for testing)
    RATELIMIT_ENABLED = False

    # Fixed Fernet key so encrypted credentials survive across app instances
    CREDENTIALS_ENCRYPTION_KEY = 'uJ0p2u3Qy0l8V6m8nX3a9cQw8pG5xR1tZ4bN7eK2hLs='

    PUBLIC_BASE_URL = 'https://checkin.example.org'

    # File Upload
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1MB for testing
    UPLOAD_FOLDER = '/tmp/churchconnect_test_uploads'

    LOG_LEVEL = 'WARNING'
