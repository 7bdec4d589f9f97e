"""
Application Constants
Centralized configuration values for the application
"""

# =============================================================================
# SECURITY CONSTANTS
# =============================================================================

# Circuit breaker settings (SMTP delivery)
CIRCUIT_BREAKER_FAIL_MAX = 5  # Failures before circuit opens
CIRCUIT_BREAKER_RESET_TIMEOUT = 30  # Seconds before circuit resets

# Fields redacted from captured request context
SENSITIVE_FIELDS = {
    'password', 'password_confirm', 'token', 'api_key', 'secret',
    'credit_card', 'card_number', 'cvv', 'ssn', 'authorization',
    'x-api-key', 'cookie', 'session'
}

# =============================================================================
# FINGERPRINT CONSTANTS
# =============================================================================

FINGERPRINT_LENGTH = 32  # Hex chars kept from the SHA-256 digest
FINGERPRINT_MAX_LENGTH = 64  # Column size, also the limit for caller overrides
FINGERPRINT_MESSAGE_CHARS = 200  # Message prefix that participates in grouping
FINGERPRINT_STACK_FRAMES = 3  # Leading stack frames that participate in grouping

# =============================================================================
# STORAGE LIMITS
# =============================================================================

TITLE_MAX_LENGTH = 255
MESSAGE_MAX_LENGTH = 2000
STACK_MAX_LENGTH = 10000
URL_MAX_LENGTH = 500
USER_AGENT_MAX_LENGTH = 500

# =============================================================================
# QUERY CONSTANTS
# =============================================================================

ISSUES_PAGE_LIMIT_DEFAULT = 20
ISSUES_PAGE_LIMIT_MAX = 100
ISSUE_EVENTS_LIMIT_DEFAULT = 50

STATS_CACHE_KEY = 'issue_stats'

# =============================================================================
# NOTIFICATION CONSTANTS
# =============================================================================

NOTIFICATION_MAX_ATTEMPTS = 3
NOTIFICATION_DRAIN_BATCH = 50
