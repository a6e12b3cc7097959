# assetprint/manifest.py
"""
Precomputed asset manifests.

A build step (webpack manifest plugin or similar) can emit the mapping ahead
of time so production servers skip scanning:

    {
        "paths": {"js/app.js": "js/app.bf5a6a71.js"},
        "hostname": "https://cdn.example.com",
        "urlPrefix": "assets"
    }
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict


class ManifestError(ValueError):
    """Raised when a manifest file is malformed."""


@dataclass(frozen=True)
class Manifest:
    """Parsed manifest: logical -> public paths plus URL settings."""
    paths: Dict[str, str] = field(default_factory=dict)
    hostname: str = ""
    url_prefix: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "Manifest":
        if not isinstance(data, dict):
            raise ManifestError("Manifest must be a JSON object")

        paths = data.get("paths", {})
        if not isinstance(paths, dict):
            raise ManifestError("Manifest 'paths' must be an object")
        for logical, public in paths.items():
            if not isinstance(public, str) or not public:
                raise ManifestError(f"Manifest entry {logical!r} has no public path")

        hostname = data.get("hostname") or ""
        url_prefix = data.get("urlPrefix") or ""
        if not isinstance(hostname, str) or not isinstance(url_prefix, str):
            raise ManifestError("Manifest 'hostname' and 'urlPrefix' must be strings")

        return cls(paths=dict(paths), hostname=hostname, url_prefix=url_prefix)

    @classmethod
    def load(cls, path: Path | str) -> "Manifest":
        """
        Read a manifest file.

        Raises:
            OSError: If the file cannot be read
            ManifestError: If the content is not a valid manifest
        """
        with open(path, encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ManifestError(f"Invalid manifest {path}: {e}") from e
        return cls.from_dict(data)
