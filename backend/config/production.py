"""Production configuration."""
import os


class ProductionConfig:
    """Production configuration class."""

    # Basic Flask config
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv('SECRET_KEY')  # Must be set in production

    CORS_ORIGINS = [origin.strip() for origin in os.getenv('CORS_ORIGINS', '*').split(',')]

    # Rate Limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_DEFAULT = "500 per hour"
    CHECKIN_RATE_LIMIT = "10 per minute"  # per client and student name

    # Token rotation
    TOKEN_ROTATION_INTERVAL = float(os.getenv('TOKEN_ROTATION_INTERVAL', '2'))
    TOKEN_ROTATION_ENABLED = True
    ROTATION_IDLE_INTERVALS = 5  # stop rotating after this many intervals unseen

    MIN_STUDENT_NAME_LENGTH = 2
    MAX_NAME_LENGTH = 100

    SESSION_MAX_AGE_HOURS = int(os.getenv('SESSION_MAX_AGE_HOURS', '24'))

    PUBLIC_BASE_URL = os.getenv('PUBLIC_BASE_URL')
    QR_BOX_SIZE = 10
    QR_BORDER = 4

    SSE_KEEPALIVE_SECONDS = 15.0

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = os.getenv('LOG_FILE', 'logs/rollcall.log')
