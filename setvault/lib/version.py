"""Four-part settings version (major.minor.build.revision)."""
from __future__ import annotations
from dataclasses import dataclass
from .errors import VersionError


@dataclass(frozen=True, order=True)
class Version:
	major: int = 0
	minor: int = 0
	build: int = 0
	revision: int = 0

	def __post_init__(self):
		for part in (self.major, self.minor, self.build, self.revision):
			if not isinstance(part, int) or part < 0:
				raise VersionError(f"Invalid version component: {part!r}")

	@classmethod
	def parse(cls, text: str) -> 'Version':
		"""Parse "1.2", "1.2.3" or "1.2.3.4"; missing parts are zero."""
		parts = (text or '').strip().split('.')
		if not 2 <= len(parts) <= 4 or not all(p.isascii() and p.isdigit() for p in parts):
			raise VersionError(f"Invalid version string: {text!r}")
		return cls(*(int(p) for p in parts))

	@property
	def is_zero(self) -> bool:
		return self == Version()

	def __str__(self) -> str:
		return f"{self.major}.{self.minor}.{self.build}.{self.revision}"
