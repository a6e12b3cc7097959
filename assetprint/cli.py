#!/usr/bin/env python3
"""
assetprint CLI

Command-line interface for inspecting and serving fingerprinted assets:
  assetprint scan  - Scan roots and print the logical -> public mapping
  assetprint serve - Scan roots (or load a manifest) and serve them over HTTP

Usage:
  assetprint scan <root>... [--config <yaml>] [--fingerprint] [--integrity] [--json]
  assetprint serve <root>... [--manifest <json>] [--host <host>] [--port <port>]
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import Config, HashType
from .manager import Manager
from .manifest import ManifestError
from .server import AssetServer


def build_config(args) -> Config:
    """Load the YAML config (if any) and apply command-line overrides."""
    config = Config.load(args.config) if args.config else Config()
    return config.with_overrides(
        fingerprint=True if args.fingerprint else None,
        subresource_integrity=True if args.integrity else None,
        hash_type=args.hash_type,
        url_prefix=args.url_prefix,
        hostname=args.hostname,
    )


def cmd_scan(args):
    """Scan roots and print the mapping."""
    manager = Manager(build_config(args), roots=args.roots)

    if args.json:
        entries = {}
        for logical, public in manager.tables.items():
            entries[logical] = {
                "public": public,
                "url": manager.asset_path(logical),
                "physical": str(manager.resolve_physical(public)),
                "integrity": manager.integrity(logical),
            }
        json.dump(entries, sys.stdout, indent=2)
        sys.stdout.write("\n")
        return

    for logical, public in manager.tables.items():
        line = f"{logical} -> {manager.asset_path(logical)}"
        integrity = manager.integrity(logical)
        if integrity:
            line += f"  {integrity}"
        print(line)
    print(f"\n{len(manager.tables)} assets in {len(manager.roots)} roots")


def cmd_serve(args):
    """Serve assets over HTTP."""
    config = build_config(args)
    if args.manifest:
        manager = Manager.from_manifest(args.manifest, root=args.manifest_root, config=config)
    else:
        manager = Manager(config, roots=args.roots)

    server = AssetServer(manager, host=args.host, port=args.port)
    print(f"Serving {len(manager.tables)} assets on http://{args.host}:{server.port}")
    server.start()


def _add_config_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--fingerprint", action="store_true",
                        help="Fingerprint assets into each root's cache directory")
    parser.add_argument("--integrity", action="store_true",
                        help="Compute Subresource Integrity digests")
    parser.add_argument("--hash-type", type=HashType.parse,
                        help="SRI digest: sha256, sha384 (default) or sha512")
    parser.add_argument("--url-prefix", help="URL prefix the assets are mounted at")
    parser.add_argument("--hostname", help="CDN hostname, e.g. https://cdn.example.com")


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        prog="assetprint",
        description="Fingerprint and serve static assets",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # scan command
    scan_parser = subparsers.add_parser("scan", help="Print the asset mapping")
    scan_parser.add_argument("roots", nargs="+", help="Asset directories")
    scan_parser.add_argument("--json", action="store_true", help="Output JSON")
    _add_config_arguments(scan_parser)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Serve assets over HTTP")
    serve_parser.add_argument("roots", nargs="*", help="Asset directories")
    serve_parser.add_argument("--manifest", help="Load mapping from a manifest instead of scanning")
    serve_parser.add_argument("--manifest-root",
                              help="Directory manifest paths are relative to (default: cwd)")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port to bind to")
    _add_config_arguments(serve_parser)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.command == "serve" and not args.roots and not args.manifest:
        parser.error("serve needs at least one root or --manifest")

    try:
        if args.command == "scan":
            cmd_scan(args)
        elif args.command == "serve":
            cmd_serve(args)
        else:
            parser.print_help()
            sys.exit(1)
    except (OSError, ManifestError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
