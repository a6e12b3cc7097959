# assetprint/tables.py
"""
Lookup tables populated by scans.

PathTables holds two maps:

    logical -> public     used to render URLs
    public  -> physical   used to serve bytes

Tables are never edited in place. Every scan produces a new instance via
merged(), so a published instance always satisfies: each public value in
the first map is a key of the second.
"""

from pathlib import Path
from types import MappingProxyType
from typing import AbstractSet, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .config import HashType


class PathTables:
    """Immutable logical/public/physical mapping."""

    def __init__(
        self,
        public_paths: Optional[Mapping[str, str]] = None,
        physical_paths: Optional[Mapping[str, Path]] = None,
        fingerprinted: Iterable[str] = (),
    ):
        self._public = MappingProxyType(dict(public_paths or {}))
        self._physical = MappingProxyType(dict(physical_paths or {}))
        # Public paths whose name embeds a content digest
        self._fingerprinted = frozenset(fingerprinted)

    def resolve_public(self, logical_path: str) -> Optional[str]:
        """Public path for a logical path, or None if it was never mapped."""
        return self._public.get(logical_path)

    def resolve_physical(self, public_path: str) -> Optional[Path]:
        """File holding the bytes for a public path, or None."""
        return self._physical.get(public_path)

    def is_fingerprinted(self, public_path: str) -> bool:
        """True when the public path changes whenever its content does."""
        return public_path in self._fingerprinted

    def merged(
        self,
        public_paths: Mapping[str, str],
        physical_paths: Mapping[str, Path],
        fingerprinted: AbstractSet[str] = frozenset(),
    ) -> "PathTables":
        """Return new tables with the given entries layered on top."""
        public = dict(self._public)
        public.update(public_paths)
        physical = dict(self._physical)
        physical.update(physical_paths)
        digested = (self._fingerprinted - set(physical_paths)) | set(fingerprinted)
        return PathTables(public, physical, digested)

    def logical_paths(self) -> List[str]:
        return sorted(self._public)

    def items(self) -> Iterator[Tuple[str, str]]:
        """Iterate (logical, public) pairs in logical-path order."""
        for logical in sorted(self._public):
            yield logical, self._public[logical]

    def __contains__(self, logical_path: str) -> bool:
        return logical_path in self._public

    def __len__(self) -> int:
        return len(self._public)


class IntegrityStore:
    """
    Subresource Integrity digests keyed by logical path.

    Digests are stored base64-encoded and rendered with the algorithm name,
    e.g. "sha384-ikdSg6BD...".
    """

    def __init__(self, hash_type: HashType, digests: Optional[Mapping[str, str]] = None):
        self.hash_type = hash_type
        self._digests = MappingProxyType(dict(digests or {}))

    def digest_for(self, logical_path: str) -> str:
        """Rendered SRI value, or "" when no digest was computed."""
        digest = self._digests.get(logical_path)
        if not digest:
            return ""
        return f"{self.hash_type}-{digest}"

    def merged(self, digests: Mapping[str, str]) -> "IntegrityStore":
        combined: Dict[str, str] = dict(self._digests)
        combined.update(digests)
        return IntegrityStore(self.hash_type, combined)

    def __len__(self) -> int:
        return len(self._digests)
