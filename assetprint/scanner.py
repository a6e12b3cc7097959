# assetprint/scanner.py
"""
Scan and fingerprint engine.

Walks a root directory and produces the mapping entries for every asset in
it. With fingerprinting enabled, eligible files are copied to:

    root/assetprint/<dir>/<name>.<md5>.<ext>

The cache directory is wiped and recreated on every scan, so fingerprinted
copies from a previous run never survive a restart.
"""

import base64
import errno
import hashlib
import logging
import os
import posixpath
import shutil
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Set

from .config import Config, HashType

logger = logging.getLogger(__name__)

# Fixed name of the cache subdirectory created inside each root
CACHE_DIR_NAME = "assetprint"


def content_digest(data: bytes) -> str:
    """
    Fingerprint digest of file content.

    MD5 is enough here: the digest only has to change when the content
    changes, it is not a security boundary.
    """
    return hashlib.md5(data).hexdigest()


def integrity_digest(data: bytes, hash_type: HashType) -> str:
    """Base64 Subresource Integrity digest of file content, without padding."""
    hasher = hash_type.new()
    hasher.update(data)
    return base64.b64encode(hasher.finalize()).decode("ascii").rstrip("=")


def fingerprinted_name(logical_path: str, digest: str) -> str:
    """
    Splice digest between a path's base name and extension.

    Files without an extension keep their name.

        >>> fingerprinted_name("js/app.js", "abc")
        'js/app.abc.js'
    """
    stem, ext = posixpath.splitext(logical_path)
    if not ext:
        return logical_path
    return f"{stem}.{digest}{ext}"


@dataclass
class ScanResult:
    """Mapping entries produced by scanning one root."""
    root: Path
    cache_dir: Path
    public_paths: Dict[str, str] = field(default_factory=dict)
    physical_paths: Dict[str, Path] = field(default_factory=dict)
    fingerprinted: Set[str] = field(default_factory=set)
    integrities: Dict[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.public_paths)


def _raise(error: OSError):
    raise error


def _reset_cache_dir(cache_dir: Path):
    """Delete any previous cache directory and create an empty one."""
    if os.path.lexists(cache_dir):
        logger.debug(f"Removing stale cache directory {cache_dir}")
        shutil.rmtree(cache_dir)
    cache_dir.mkdir()


def scan(root: Path | str, config: Config) -> ScanResult:
    """
    Scan a root directory.

    Args:
        root: Directory to scan. Must exist.
        config: Settings controlling fingerprinting, matching and SRI.

    Returns:
        ScanResult with the entries for this root

    Raises:
        OSError: Any failure to read the tree or write the cache aborts the
            scan. Nothing is rolled back; the cache directory may be partial.
    """
    root = Path(os.path.abspath(root))
    info = root.stat()
    if not stat.S_ISDIR(info.st_mode):
        raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), str(root))

    cache_dir = root / CACHE_DIR_NAME if config.fingerprint else root
    if config.fingerprint:
        _reset_cache_dir(cache_dir)

    result = ScanResult(root=root, cache_dir=cache_dir)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        current = Path(dirpath)
        rel_dir = current.relative_to(root)

        if rel_dir == Path("."):
            # Never descend into our own output
            dirnames[:] = [d for d in dirnames if d != CACHE_DIR_NAME]
        elif config.fingerprint:
            (cache_dir / rel_dir).mkdir(exist_ok=True)
        dirnames.sort()

        for name in sorted(filenames):
            path = current / name
            file_info = path.stat()
            if not stat.S_ISREG(file_info.st_mode):
                continue
            _scan_file(result, config, path, (rel_dir / name).as_posix(), file_info)

    logger.info(f"Scanned {root}: {len(result)} assets")
    return result


def _scan_file(result: ScanResult, config: Config, path: Path,
               logical_path: str, info: os.stat_result):
    """Record the mapping entries for one regular file."""
    if not config.fingerprint:
        # Development mode: every file is served from the source tree
        result.public_paths[logical_path] = logical_path
        result.physical_paths[logical_path] = path
        return

    if not config.matcher(logical_path, info):
        return

    # Read once so the copy is byte-identical to what was hashed
    with open(path, "rb") as f:
        data = f.read()

    public_path = fingerprinted_name(logical_path, content_digest(data))
    target = result.cache_dir / public_path
    with open(target, "wb") as f:
        f.write(data)
    os.chmod(target, stat.S_IMODE(info.st_mode))

    result.public_paths[logical_path] = public_path
    result.physical_paths[public_path] = target
    if public_path != logical_path:
        result.fingerprinted.add(public_path)
    if config.subresource_integrity:
        result.integrities[logical_path] = integrity_digest(data, config.hash_type)

    logger.debug(f"Fingerprinted {logical_path} -> {public_path}")
