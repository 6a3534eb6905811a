"""Testing configuration."""


class TestingConfig:
    """Testing configuration class."""

    # Basic Flask config
    DEBUG = False
    TESTING = True
    SECRET_KEY = 'test-secret-key'

    CORS_ORIGINS = ["*"]

    # Rate Limiting (disabled for testing)
    RATELIMIT_ENABLED = False
    RATELIMIT_STORAGE_URI = 'memory://'
    RATELIMIT_DEFAULT = "1000 per hour"
    CHECKIN_RATE_LIMIT = "1000 per minute"

    # Tokens only rotate when a test asks for it
    TOKEN_ROTATION_INTERVAL = 0.05
    TOKEN_ROTATION_ENABLED = False
    ROTATION_IDLE_INTERVALS = 5  # stop rotating after this many intervals unseen

    MIN_STUDENT_NAME_LENGTH = 2
    MAX_NAME_LENGTH = 100

    SESSION_MAX_AGE_HOURS = 24

    PUBLIC_BASE_URL = 'http://testserver'
    QR_BOX_SIZE = 4
    QR_BORDER = 4

    # Short keepalive so event streams don't stall the test client
    SSE_KEEPALIVE_SECONDS = 0.1

    # Logging
    LOG_LEVEL = 'WARNING'
    LOG_FILE = None
