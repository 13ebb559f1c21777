"""File-level encryption envelope.

File format:
	[16-byte signature][AES-CBC ciphertext, zero padded]

The whole ciphertext is read into memory before decryption (files are
capped by `max_file_size`), so no decrypted temp file ever hits the disk.
"""
from __future__ import annotations
import io, logging
from pathlib import Path
from typing import BinaryIO, Union
from config.settings import MIN_PASSWORD_LENGTH, MAX_FILE_SIZE, BLOCK_SIZE, SIGNATURE
from .crypto import (
	KeyMaterial, DecryptingReader, build_cipher, encrypt_stream,
	password_is_valid, write_signature, verify_signature,
)
from .errors import ConfigurationError, CryptoError, FormatError, NotFoundError, SizeLimitError

log = logging.getLogger(__name__)

Payload = Union[bytes, bytearray, memoryview, BinaryIO]


class FileEncryptor:
	"""Reads and writes encrypted files for one password.

	A password shorter than MIN_PASSWORD_LENGTH leaves the instance disabled:
	every call raises ConfigurationError before the filesystem is touched.
	Not thread-safe; confine an instance to one caller at a time.
	"""

	def __init__(self, password: str | None, max_file_size: int = MAX_FILE_SIZE):
		self.max_file_size = max_file_size
		self._material: KeyMaterial | None = None
		self._cipher = None
		self._closed = False
		if not password_is_valid(password):
			log.warning("Password shorter than %d characters; encryption disabled", MIN_PASSWORD_LENGTH)
			return
		self._material = KeyMaterial.derive(password)

	@property
	def disabled(self) -> bool:
		return self._material is None

	def _require_cipher(self):
		if self._closed:
			raise ConfigurationError("Encryptor is closed")
		if self._material is None:
			raise ConfigurationError("Invalid password - encryption is disabled")
		if self._cipher is None:
			self._cipher = build_cipher(self._material)
		return self._cipher

	def ensure_usable(self) -> None:
		"""Raise ConfigurationError when disabled or closed."""
		self._require_cipher()

	def write(self, data: Payload, path) -> None:
		"""Create/truncate `path` and write signature + ciphertext."""
		cipher = self._require_cipher()
		source = io.BytesIO(bytes(data)) if isinstance(data, (bytes, bytearray, memoryview)) else data
		with open(path, 'wb') as out:
			write_signature(out)
			n = encrypt_stream(source, out, cipher)
		log.debug("Encrypted %d bytes -> %s", n, path)

	def read(self, path) -> DecryptingReader:
		"""Return a reader that decrypts the payload of `path` on demand."""
		cipher = self._require_cipher()
		path = Path(path)
		if not path.is_file():
			raise NotFoundError(f"File not found: {path}", path)
		size = path.stat().st_size
		if size > self.max_file_size:
			raise SizeLimitError(f"File too large: {size} bytes (limit {self.max_file_size})", size, self.max_file_size)
		with open(path, 'rb') as f:
			if not verify_signature(f):
				raise FormatError(f"Invalid signature - {path} was not written by this envelope")
			f.seek(len(SIGNATURE))
			payload = f.read()
		if len(payload) % BLOCK_SIZE:
			raise CryptoError("Ciphertext length is not a multiple of the block size")
		return DecryptingReader(io.BytesIO(payload), cipher)

	def read_bytes(self, path) -> bytes:
		with self.read(path) as reader:
			return reader.read()

	def close(self):
		if self._material is not None:
			self._material.clear()
		self._material = None
		self._cipher = None
		self._closed = True

	def __enter__(self):
		return self

	def __exit__(self, *exc):
		self.close()
		return False
