QR_PAYLOAD_VERSION_MIN = 1
QR_SECRET_BYTES = 32
QR_NONCE_BYTES = 16
QR_EXPIRY_MINUTES_MIN = 1
QR_EXPIRY_MINUTES_MAX = 60

REWARD_DEEP_LINK_PATH = "reward"
REDEMPTION_DEEP_LINK_PATH = "redemption"
LEGACY_REWARD_CODE_PREFIX = "REWARD_"
RAW_IDENTIFIER_PATTERN = r"^[a-zA-Z0-9_-]{10,}$"
IDENTIFIER_CHARS_PATTERN = r"[a-zA-Z0-9_-]+"
