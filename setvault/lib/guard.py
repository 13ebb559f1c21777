"""Bounded-wait mutual exclusion for a single settings store."""
from __future__ import annotations
import logging, threading
from contextlib import contextmanager
from config.settings import LOCK_TIMEOUT
from .errors import ConcurrencyError

log = logging.getLogger(__name__)


class MutualExclusionGuard:
	"""Non-reentrant lock whose acquisition gives up after `timeout` seconds."""

	def __init__(self, timeout: float = LOCK_TIMEOUT):
		if timeout is None or timeout < 0:
			raise ValueError("Guard timeout must be a non-negative number of seconds")
		self.timeout = timeout
		self._lock = threading.Lock()

	@property
	def locked(self) -> bool:
		return self._lock.locked()

	def acquire(self, operation: str = "access", timeout: float | None = None) -> None:
		wait = self.timeout if timeout is None else timeout
		if not self._lock.acquire(timeout=wait):
			log.warning("Guard busy: gave up on %s after %.2fs", operation, wait)
			raise ConcurrencyError(f"Cannot {operation} settings because they are held by another thread", wait)

	def release(self) -> None:
		self._lock.release()

	@contextmanager
	def hold(self, operation: str = "access"):
		self.acquire(operation)
		try:
			yield self
		finally:
			self.release()

	def __enter__(self):
		self.acquire()
		return self

	def __exit__(self, *exc):
		self.release()
		return False
