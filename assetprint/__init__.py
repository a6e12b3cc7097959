# assetprint - Content fingerprinting and serving for static assets
#
# Copies scripts, stylesheets and other built assets into a cache directory
# under content-derived names, so they can be cached by browsers and CDNs
# forever and still change URL whenever their content changes.
#
# Core concepts:
# - Config: Immutable settings (fingerprinting, URL prefix, CDN host, SRI)
# - Scan: Walks a root, hashes files and produces mapping entries
# - PathTables: logical -> public -> physical lookups
# - Manager: The registry; renders asset URLs and resolves requests
# - AssetApp: WSGI handler serving the physical files

from .config import Config, HashType, Matcher, default_matcher, suffix_matcher
from .scanner import CACHE_DIR_NAME, ScanResult, scan
from .tables import IntegrityStore, PathTables
from .manifest import Manifest, ManifestError
from .manager import (
    Manager,
    add,
    asset_path,
    default_manager,
    integrity,
    set_config,
)
from .server import AssetApp, AssetServer, serve

__all__ = [
    # Configuration
    "Config",
    "HashType",
    "Matcher",
    "default_matcher",
    "suffix_matcher",
    # Scanning
    "CACHE_DIR_NAME",
    "ScanResult",
    "scan",
    # Tables
    "IntegrityStore",
    "PathTables",
    # Manifest
    "Manifest",
    "ManifestError",
    # Registry
    "Manager",
    "default_manager",
    "add",
    "asset_path",
    "integrity",
    "set_config",
    # Serving
    "AssetApp",
    "AssetServer",
    "serve",
]

__version__ = "0.1.0"
