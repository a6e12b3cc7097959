# assetprint/manager.py
"""
Asset manager: the registry applications talk to.

Usage:
    manager = Manager(Config(fingerprint=True), roots=["static"])
    manager.asset_path("js/app.js")     # "/js/app.bf5a6a71....js"
    manager.resolve_request("/js/app.bf5a6a71....js")   # Path in static/assetprint

All lookups read a single immutable snapshot of the manager state. add() and
set_config() build the next snapshot off to the side and publish it with one
attribute assignment, so concurrent readers see either the old state or the
new one, never a half-built table.
"""

import logging
import os
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from markupsafe import Markup

from .config import Config
from .manifest import Manifest
from .scanner import scan
from .tables import IntegrityStore, PathTables

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _State:
    """Everything a lookup needs, published as one unit."""
    config: Config
    paths: PathTables
    integrities: IntegrityStore
    roots: Tuple[str, ...] = ()
    manifest: Optional[Manifest] = None
    manifest_root: Optional[Path] = None

    @classmethod
    def empty(cls, config: Config) -> "_State":
        return cls(
            config=config,
            paths=PathTables(),
            integrities=IntegrityStore(config.hash_type),
        )

    def scanned(self, root: Path | str) -> "_State":
        """Return the state extended with a scan of root."""
        result = scan(root, self.config)
        return replace(
            self,
            roots=self.roots + (str(root),),
            paths=self.paths.merged(
                result.public_paths, result.physical_paths, result.fingerprinted
            ),
            integrities=self.integrities.merged(result.integrities),
        )

    def bootstrapped(self, manifest: Manifest, root: Path) -> "_State":
        """Return the state extended with manifest entries served from root."""
        physical = {public: root / public for public in manifest.paths.values()}
        digested = {
            public for logical, public in manifest.paths.items() if public != logical
        }
        return replace(
            self,
            paths=self.paths.merged(manifest.paths, physical, digested),
            manifest=manifest,
            manifest_root=root,
        )

    def render_path(self, logical_path: str) -> str:
        public = self.paths.resolve_public(logical_path)
        if public is None:
            return ""
        parts = []
        if self.config.hostname:
            parts.append(self.config.hostname)
        if self.config.url_prefix:
            parts.append(self.config.url_prefix)
        parts.append(public)
        if self.config.hostname:
            return "/".join(parts)
        return "/" + "/".join(parts)


def _render_tag(name: str, attributes: Iterable[Tuple[str, str]], end_tag: bool) -> Markup:
    rendered = Markup(" ").join(
        Markup('{}="{}"').format(key, value) for key, value in attributes
    )
    tag = Markup("<{} {}>").format(name, rendered)
    if end_tag:
        tag += Markup("</{}>").format(name)
    return tag


class Manager:
    """
    Fingerprints, maps and resolves static assets.

    Args:
        config: Settings snapshot (defaults to Config()).
        roots: Directories to scan immediately, in order.
    """

    def __init__(self, config: Optional[Config] = None, roots: Iterable[Path | str] = ()):
        self._write_lock = threading.Lock()
        self._state = _State.empty(config or Config())
        for root in roots:
            self.add(root)

    @classmethod
    def from_manifest(
        cls,
        manifest_path: Path | str,
        root: Path | str = None,
        config: Optional[Config] = None,
    ) -> "Manager":
        """
        Build a manager from a precomputed manifest instead of scanning.

        Args:
            manifest_path: JSON manifest file
            root: Directory public paths are relative to (default: cwd)
            config: Base settings; the manifest's hostname and URL prefix
                override it when present

        Raises:
            ManifestError: If the manifest is malformed
        """
        manifest = Manifest.load(manifest_path)
        config = (config or Config(fingerprint=True)).with_overrides(
            hostname=manifest.hostname or None,
            url_prefix=manifest.url_prefix or None,
        )
        root = Path(os.path.abspath(root if root is not None else os.getcwd()))

        manager = cls(config)
        manager._state = manager._state.bootstrapped(manifest, root)
        logger.info(f"Loaded {len(manifest.paths)} assets from manifest {manifest_path}")
        return manager

    @property
    def config(self) -> Config:
        return self._state.config

    @property
    def roots(self) -> Tuple[str, ...]:
        """Registered roots, in registration order."""
        return self._state.roots

    @property
    def tables(self) -> PathTables:
        return self._state.paths

    def add(self, root: Path | str):
        """
        Include root in serving scope.

        With fingerprinting enabled the root's cache subdirectory is removed
        and rebuilt. On failure the OSError propagates and neither the tables
        nor the registered roots change.
        """
        with self._write_lock:
            self._state = self._state.scanned(root)

    def set_config(self, config: Config):
        """
        Replace the configuration.

        A new manager is built from config and every registered root is
        rescanned in order. The live state is swapped only if all scans
        succeed.
        """
        with self._write_lock:
            current = self._state
            state = Manager(config)._state
            if current.manifest is not None:
                state = state.bootstrapped(current.manifest, current.manifest_root)
            for root in current.roots:
                state = state.scanned(root)
            self._state = state
        logger.info(f"Reconfigured asset manager ({len(current.roots)} roots)")

    def resolve_public(self, logical_path: str) -> Optional[str]:
        return self._state.paths.resolve_public(logical_path)

    def resolve_physical(self, public_path: str) -> Optional[Path]:
        return self._state.paths.resolve_physical(public_path)

    def lookup_request(self, path: str) -> Optional[Tuple[Path, bool]]:
        """
        Map an inbound request path to the file to serve.

        The URL prefix is stripped when present, then one leading slash.

        Returns:
            (physical path, immutable) or None. immutable is True when the
            public path carries a content digest, so responses may be cached
            forever. Both values come from the same state snapshot.
        """
        state = self._state
        prefix = state.config.url_prefix
        if prefix:
            mount = "/" + prefix
            if path == mount or path.startswith(mount + "/"):
                path = path[len(mount):]
        if path.startswith("/"):
            path = path[1:]
        physical = state.paths.resolve_physical(path)
        if physical is None:
            return None
        return physical, state.paths.is_fingerprinted(path)

    def resolve_request(self, path: str) -> Optional[Path]:
        found = self.lookup_request(path)
        return found[0] if found else None

    def asset_path(self, logical_path: str) -> str:
        """
        URL for a logical path, with hostname and URL prefix if configured.

        Returns "" for paths that were never mapped. Meant to be passed to
        template engines as a helper function.
        """
        return self._state.render_path(logical_path)

    def integrity(self, logical_path: str) -> str:
        """SRI value (e.g. "sha384-...") for a logical path, or ""."""
        return self._state.integrities.digest_for(logical_path)

    def script(self, logical_path: str, attrs: Optional[Dict[str, str]] = None) -> Markup:
        """Render a <script> tag for a logical path."""
        state = self._state
        attributes = [("src", state.render_path(logical_path)), ("type", "text/javascript")]
        attributes.extend((attrs or {}).items())
        if state.config.subresource_integrity:
            attributes.append(("integrity", state.integrities.digest_for(logical_path)))
        return _render_tag("script", attributes, end_tag=True)

    def link(self, logical_path: str, attrs: Optional[Dict[str, str]] = None) -> Markup:
        """Render a stylesheet <link> tag for a logical path."""
        state = self._state
        attributes = [
            ("href", state.render_path(logical_path)),
            ("rel", "stylesheet"),
            ("type", "text/css"),
        ]
        attributes.extend((attrs or {}).items())
        if state.config.subresource_integrity:
            attributes.append(("integrity", state.integrities.digest_for(logical_path)))
        return _render_tag("link", attributes, end_tag=False)


# Process-wide convenience instance. Optional: applications and tests can
# construct their own managers instead.
default_manager = Manager()


def add(root: Path | str):
    default_manager.add(root)


def asset_path(logical_path: str) -> str:
    return default_manager.asset_path(logical_path)


def integrity(logical_path: str) -> str:
    return default_manager.integrity(logical_path)


def set_config(config: Config):
    default_manager.set_config(config)
