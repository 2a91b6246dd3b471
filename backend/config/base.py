"""Base configuration shared by every environment."""
import os
from datetime import timedelta


class BaseConfig:
    """Base configuration."""

    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=7)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=30)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI') or 'memory://'
    RATELIMIT_DEFAULT = "1000 per day, 200 per hour"
    EXTERNAL_CHECKIN_RATE_LIMIT = "10 per minute"

    # Tenancy
    TRIAL_PERIOD_DAYS = 30
    DEFAULT_MAX_MEMBERS = 100
    DEFAULT_BRAND_COLOR = '#6366f1'

    # Kiosk
    KIOSK_SESSION_TIMEOUT_DEFAULT = 60  # minutes
    KIOSK_TIMEOUT_PRESETS = (15, 30, 60, 120, 240, 480)
    KIOSK_TOKEN_EXPIRES = timedelta(hours=8)

    # External check-in
    EXTERNAL_CHECKIN_TOKEN_BYTES = 12  # 16 URL-safe characters
    PUBLIC_BASE_URL = os.environ.get('PUBLIC_BASE_URL')

    # Follow-up
    FOLLOW_UP_ABSENCE_WEEKS = 3

    # Communication providers
    CREDENTIALS_ENCRYPTION_KEY = os.environ.get('CREDENTIALS_ENCRYPTION_KEY')
    PROVIDER_REQUEST_TIMEOUT = 15  # seconds

    # File Upload
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # 5MB
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or 'uploads'
    ALLOWED_IMAGE_EXTENSIONS = {'jpeg', 'jpg', 'png', 'gif', 'webp'}
    ALLOWED_IMPORT_EXTENSIONS = {'csv', 'xlsx', 'xls'}

    # Pagination
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
