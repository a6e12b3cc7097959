# assetprint/config.py
"""
Manager configuration.

A Config is an immutable snapshot. Changing settings on a live Manager goes
through Manager.set_config(), which builds a new registry from scratch.
"""

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml
from cryptography.hazmat.primitives import hashes

# Eligibility predicate: (logical path, stat result) -> fingerprint it?
Matcher = Callable[[str, os.stat_result], bool]


class HashType(Enum):
    """Digest algorithms accepted by Subresource Integrity."""
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"

    def new(self) -> hashes.Hash:
        """Create a fresh hash context for this algorithm."""
        return hashes.Hash(_ALGORITHMS[self]())

    @classmethod
    def parse(cls, value: "HashType | str") -> "HashType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower().replace("-", ""))
        except ValueError:
            raise ValueError(f"Unsupported hash type: {value!r}") from None

    def __str__(self) -> str:
        return self.value


_ALGORITHMS = {
    HashType.SHA256: hashes.SHA256,
    HashType.SHA384: hashes.SHA384,
    HashType.SHA512: hashes.SHA512,
}


def suffix_matcher(*suffixes: str) -> Matcher:
    """Build a matcher accepting files whose path ends with one of suffixes."""
    wanted = tuple(suffixes)

    def matcher(path: str, info: os.stat_result) -> bool:
        return path.endswith(wanted)

    return matcher


# Scripts and stylesheets only
default_matcher = suffix_matcher(".js", ".css")


@dataclass(frozen=True)
class Config:
    """
    Settings for a Manager.

    Attributes:
        fingerprint: Copy eligible files into the cache dir under hashed names.
            Off by default so development servers serve the source tree.
        url_prefix: Mount point of the asset handler, without slashes.
        hostname: CDN origin prepended to rendered paths (e.g. https://cdn.com).
        matcher: Decides which files get fingerprinted and served.
        subresource_integrity: Compute SRI digests for fingerprinted files.
        hash_type: SRI digest algorithm.
    """
    fingerprint: bool = False
    url_prefix: str = ""
    hostname: str = ""
    matcher: Matcher = field(default=default_matcher, compare=False)
    subresource_integrity: bool = False
    hash_type: HashType = HashType.SHA384

    def __post_init__(self):
        object.__setattr__(self, "url_prefix", (self.url_prefix or "").strip("/"))
        object.__setattr__(self, "hostname", (self.hostname or "").rstrip("/"))
        object.__setattr__(self, "hash_type", HashType.parse(self.hash_type))
        if self.matcher is None:
            object.__setattr__(self, "matcher", default_matcher)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """
        Build a Config from plain data (e.g. a parsed YAML document).

        Recognised keys: fingerprint, url_prefix, hostname,
        subresource_integrity, hash_type, extensions.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Config must be a mapping, got {type(data).__name__}")

        matcher = default_matcher
        extensions = data.get("extensions")
        if extensions:
            if isinstance(extensions, str):
                extensions = [extensions]
            matcher = suffix_matcher(*extensions)

        return cls(
            fingerprint=bool(data.get("fingerprint", False)),
            url_prefix=data.get("url_prefix", ""),
            hostname=data.get("hostname", ""),
            matcher=matcher,
            subresource_integrity=bool(data.get("subresource_integrity", False)),
            hash_type=HashType.parse(data.get("hash_type", HashType.SHA384)),
        )

    @classmethod
    def load(cls, path: Path | str) -> "Config":
        """Load configuration from a YAML file."""
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Failed to parse {path}: {e}") from e
        return cls.from_dict(data or {})

    def with_overrides(self, **changes: Optional[Any]) -> "Config":
        """Return a copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})
