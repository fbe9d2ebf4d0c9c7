"""Global constants for the dlsarena application."""

# Firestore collections
USERS_COLLECTION = "users"
MATCHES_COLLECTION = "matches"
TOURNAMENTS_COLLECTION = "tournaments"
DISPUTES_COLLECTION = "disputes"
REWARDS_COLLECTION = "rewards"
NOTIFICATIONS_COLLECTION = "notifications"

# User roles
ROLE_VALIDATOR = "validator"

# Dispute policy
DEFAULT_DISPUTE_WINDOW_MINUTES = 30
MAX_PROOF_BYTES = 5 * 1024 * 1024
ALLOWED_PROOF_MIME_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/gif", "image/webp"}
)

# Rewards, in the canonical currency unit
DEFAULT_VALIDATION_REWARD_AMOUNT = 500

# Currency
DEFAULT_CANONICAL_CURRENCY = "XOF"
EXCHANGE_RATE_BASE = "EUR"
EXCHANGE_RATE_API_URL = "https://open.er-api.com/v6/latest/{base}"
