"""
Project constants definitions
"""

# ============================================================
# Default Values
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_SSH_TIMEOUT = 10
DEFAULT_AUTH_METHOD = "password"

# ============================================================
# SSH Config
# ============================================================

SSH_CONFIG_PATH = "~/.ssh/config"
DEFAULT_KEY_NAMES = ("id_ed25519", "id_ecdsa", "id_rsa")

# ============================================================
# Local Output
# ============================================================

OUTPUT_DIR_PREFIX = "fetch-"
OUTPUT_DIR_TIME_FORMAT = "%Y%m%d-%H%M%S"
PARTIAL_SUFFIX = ".part"

# ============================================================
# Outcome Details
# ============================================================

CANCELLED_DETAIL = "cancelled"

# ============================================================
# Exit Codes
# ============================================================

EXIT_OK = 0
EXIT_PARTIAL_FAILURE = 1
EXIT_FATAL = 2
