"""Development configuration."""
import os


class DevelopmentConfig:
    """Development configuration class."""

    # Basic Flask config
    DEBUG = True
    TESTING = False
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    # CORS (viewer pages may be served from another origin)
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]

    # Rate Limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_DEFAULT = "1000 per hour"
    CHECKIN_RATE_LIMIT = "20 per minute"  # per client and student name

    # Token rotation
    TOKEN_ROTATION_INTERVAL = 2.0  # seconds
    TOKEN_ROTATION_ENABLED = True
    ROTATION_IDLE_INTERVALS = 5  # stop rotating after this many intervals unseen

    # Names
    MIN_STUDENT_NAME_LENGTH = 2
    MAX_NAME_LENGTH = 100

    # Housekeeping
    SESSION_MAX_AGE_HOURS = 24

    # QR rendering
    PUBLIC_BASE_URL = os.getenv('PUBLIC_BASE_URL', 'http://localhost:5000')
    QR_BOX_SIZE = 10
    QR_BORDER = 4

    # Server-Sent Events
    SSE_KEEPALIVE_SECONDS = 15.0

    # Logging
    LOG_LEVEL = 'DEBUG'
    LOG_FILE = 'logs/rollcall.log'
