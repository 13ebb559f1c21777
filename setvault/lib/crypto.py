"""Cryptographic primitives for the settings envelope.

Key derivation, the envelope signature and the streaming AES-CBC codec with
zero padding. Payloads are UTF-8 XML, so stripping trailing zero bytes after
decryption is safe for them; binary payloads that end in zero bytes will not
round-trip.
"""
from __future__ import annotations
import io, logging
from typing import BinaryIO
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.backends import default_backend
from config.settings import (
	MIN_PASSWORD_LENGTH, KEY_LENGTH, IV_LENGTH, BLOCK_SIZE, CHUNK_SIZE, SIGNATURE
)
from .errors import CryptoError, ConfigurationError

log = logging.getLogger(__name__)


def _md5(data: bytes) -> bytes:
	digest = hashes.Hash(hashes.MD5(), backend=default_backend())
	digest.update(data)
	return digest.finalize()

def _swap_unit_pairs(units: bytes) -> bytes:
	# UTF-16 code units are 2 bytes; swap unit 0<->1, 2<->3, ... (odd tail stays)
	out = bytearray(units)
	for o in range(0, len(out) - len(out) % 4, 4):
		out[o:o+4] = out[o+2:o+4] + out[o:o+2]
	return bytes(out)

def password_is_valid(password: str | None) -> bool:
	return password is not None and len(password) >= MIN_PASSWORD_LENGTH


class KeyMaterial:
	"""Key + IV derived from a password. Unsalted, so deterministic."""

	def __init__(self, key: bytes, iv: bytes):
		if len(key) != KEY_LENGTH: raise CryptoError("Bad key length")
		if len(iv) != IV_LENGTH: raise CryptoError("Bad IV length")
		self._key = bytearray(key)
		self._iv = bytearray(iv)

	@classmethod
	def derive(cls, password: str) -> 'KeyMaterial':
		if not password_is_valid(password):
			raise ConfigurationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
		units = password.encode('utf-16-le')
		return cls(_md5(_swap_unit_pairs(units)), _md5(units))

	@property
	def key(self) -> bytes:
		return bytes(self._key)

	@property
	def iv(self) -> bytes:
		return bytes(self._iv)

	@property
	def cleared(self) -> bool:
		return not any(self._key) and not any(self._iv)

	def clear(self):
		for buf in (self._key, self._iv):
			for i in range(len(buf)):
				buf[i] = 0


def build_cipher(material: KeyMaterial) -> Cipher:
	return Cipher(algorithms.AES(material.key), modes.CBC(material.iv), backend=default_backend())


# --- Signature ---

def write_signature(stream: BinaryIO) -> None:
	stream.seek(0)
	stream.write(SIGNATURE)

def verify_signature(stream: BinaryIO) -> bool:
	head = stream.read(len(SIGNATURE))
	if head != SIGNATURE:
		return False
	stream.seek(0)
	return True


# --- Stream codec ---

def encrypt_stream(source: BinaryIO, target: BinaryIO, cipher: Cipher) -> int:
	"""Encrypt `source` into `target` chunk by chunk; returns plaintext length.

	The final partial block is padded with zero bytes. Block-aligned input
	gets no extra padding block.
	"""
	enc = cipher.encryptor()
	total = 0
	while True:
		chunk = source.read(CHUNK_SIZE)
		if not chunk:
			break
		target.write(enc.update(chunk))
		total += len(chunk)
	rem = total % BLOCK_SIZE
	if rem:
		target.write(enc.update(b"\0" * (BLOCK_SIZE - rem)))
	target.write(enc.finalize())
	return total

def encrypt_bytes(data: bytes, cipher: Cipher) -> bytes:
	out = io.BytesIO()
	encrypt_stream(io.BytesIO(data), out, cipher)
	return out.getvalue()


class DecryptingReader(io.RawIOBase):
	"""Binary reader that decrypts `source` lazily as it is read.

	The last plaintext block is held back until the source is exhausted so
	its zero padding can be stripped.
	"""

	def __init__(self, source: BinaryIO, cipher: Cipher):
		super().__init__()
		self._source = source
		self._decryptor = cipher.decryptor()
		self._buffer = bytearray()
		self._held = b""
		self._eof = False

	def readable(self) -> bool:
		return True

	def readinto(self, b) -> int:
		while not self._buffer and not self._eof:
			self._fill()
		n = min(len(b), len(self._buffer))
		b[:n] = self._buffer[:n]
		del self._buffer[:n]
		return n

	def _fill(self):
		chunk = self._source.read(CHUNK_SIZE)
		try:
			if chunk:
				out = self._held + self._decryptor.update(chunk)
			else:
				out = self._held + self._decryptor.finalize()
				self._eof = True
		except ValueError as e:
			raise CryptoError(f"Decrypt failed: {e}") from e
		if self._eof:
			self._held = b""
			self._buffer += out.rstrip(b"\0")
		else:
			self._held = out[-BLOCK_SIZE:]
			self._buffer += out[:-BLOCK_SIZE]

	def close(self):
		if not self.closed:
			self._source.close()
		super().close()


def decrypt_bytes(data: bytes, cipher: Cipher) -> bytes:
	if len(data) % BLOCK_SIZE:
		raise CryptoError("Ciphertext length is not a multiple of the block size")
	with DecryptingReader(io.BytesIO(data), cipher) as reader:
		return reader.read()
