"""Configuration settings and constants for setvault.

The constants live in `config.settings`; this package re-exports them so
both `from config import LOCK_TIMEOUT` and `from config.settings import
LOCK_TIMEOUT` work. Keep new constants in `settings.py` only.
"""

from .settings import (
	MIN_PASSWORD_LENGTH, KEY_LENGTH, IV_LENGTH, BLOCK_SIZE, CHUNK_SIZE, SIGNATURE,
	DEFAULT_SETTINGS_PATH, ROOT_ELEMENT, ITEM_ELEMENT, MAX_FILE_SIZE, LOCK_TIMEOUT,
	LEGACY_ZERO_VERSION, BACKUP_SUFFIX, LOG_LEVEL,
)

__all__ = [
	'MIN_PASSWORD_LENGTH', 'KEY_LENGTH', 'IV_LENGTH', 'BLOCK_SIZE', 'CHUNK_SIZE', 'SIGNATURE',
	'DEFAULT_SETTINGS_PATH', 'ROOT_ELEMENT', 'ITEM_ELEMENT', 'MAX_FILE_SIZE', 'LOCK_TIMEOUT',
	'LEGACY_ZERO_VERSION', 'BACKUP_SUFFIX', 'LOG_LEVEL'
]
