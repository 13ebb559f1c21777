"""Project configuration settings.

Constants shared by the envelope, storage and CLI layers. A handful of them
can be overridden through the environment (handy in tests and for ops).
"""

from pathlib import Path
import os

# Security / crypto
MIN_PASSWORD_LENGTH = 6
KEY_LENGTH = 16  # AES-128
IV_LENGTH = 16   # AES block size
BLOCK_SIZE = 16
CHUNK_SIZE = 4096
SIGNATURE = bytes([
	123, 78, 99, 166,
	0, 43, 244, 8,
	5, 89, 239, 255,
	45, 188, 7, 33,
])

# Settings file
DEFAULT_SETTINGS_PATH = Path(os.environ.get("SETVAULT_PATH", "settings.xml"))
ROOT_ELEMENT = "Settings"
ITEM_ELEMENT = "item"

# Limits
MAX_FILE_SIZE = int(os.environ.get("SETVAULT_MAX_FILE_SIZE", 2**31 - 1))
LOCK_TIMEOUT = float(os.environ.get("SETVAULT_LOCK_TIMEOUT", 3.0))  # seconds

# Accept a stored 0.0.0.0 version as current (old debug builds wrote it)
LEGACY_ZERO_VERSION = os.environ.get("SETVAULT_LEGACY_ZERO_VERSION", "").lower() in ("1", "true", "yes")

# Backup extensions
BACKUP_SUFFIX = ".backup"

# Logging
LOG_LEVEL = os.environ.get("SETVAULT_LOG_LEVEL", "WARNING")

__all__ = [
	'MIN_PASSWORD_LENGTH','KEY_LENGTH','IV_LENGTH','BLOCK_SIZE','CHUNK_SIZE','SIGNATURE',
	'DEFAULT_SETTINGS_PATH','ROOT_ELEMENT','ITEM_ELEMENT','MAX_FILE_SIZE','LOCK_TIMEOUT',
	'LEGACY_ZERO_VERSION','BACKUP_SUFFIX','LOG_LEVEL'
]
