#!/usr/bin/env python3
"""Bump the actionchat version.

This script updates version numbers in:
- actionchat/__version__.py
- pyproject.toml

Usage:
    python tools/bump_version.py patch          # 0.3.0 -> 0.3.1
    python tools/bump_version.py minor          # 0.3.1 -> 0.4.0
    python tools/bump_version.py major          # 0.4.0 -> 1.0.0
    python tools/bump_version.py --set 1.2.3    # Set specific version
    python tools/bump_version.py minor --pre rc # 0.3.0 -> 0.4.0-rc.1
"""

import argparse
import re
import sys
from pathlib import Path
from typing import Tuple

VERSION_FILE = Path("actionchat") / "__version__.py"
PYPROJECT_FILE = Path("pyproject.toml")


def parse_version(version: str) -> Tuple[int, int, int, str, int]:
    """Parse ``X.Y.Z`` or ``X.Y.Z-pre.N`` into its components."""
    match = re.match(r'^(\d+)\.(\d+)\.(\d+)(?:-([a-z]+)\.(\d+))?$', version)
    if not match:
        raise ValueError(f"Invalid version format: {version}")
    major, minor, patch = int(match.group(1)), int(match.group(2)), int(match.group(3))
    return major, minor, patch, match.group(4) or "", int(match.group(5) or 0)


def format_version(major: int, minor: int, patch: int, pre_type: str = "", pre_num: int = 0) -> str:
    version = f"{major}.{minor}.{patch}"
    if pre_type:
        version += f"-{pre_type}.{pre_num}"
    return version


def bump_version(current: str, bump_type: str, pre_type: str = "") -> str:
    major, minor, patch, curr_pre_type, curr_pre_num = parse_version(current)

    # Continuing the same prerelease only increments its number
    if pre_type and curr_pre_type == pre_type:
        return format_version(major, minor, patch, pre_type, curr_pre_num + 1)

    if bump_type == "major":
        major, minor, patch = major + 1, 0, 0
    elif bump_type == "minor":
        minor, patch = minor + 1, 0
    elif bump_type == "patch":
        patch += 1
    else:
        raise ValueError(f"Invalid bump type: {bump_type}")
    return format_version(major, minor, patch, pre_type, 1 if pre_type else 0)


def get_current_version(project_root: Path) -> str:
    version_file = project_root / VERSION_FILE
    if not version_file.exists():
        raise FileNotFoundError(f"Version file not found: {version_file}")
    match = re.search(r'__version__\s*=\s*"([^"]+)"', version_file.read_text())
    if not match:
        raise ValueError("Could not find __version__ in __version__.py")
    return match.group(1)


def update_file(path: Path, pattern: str, replacement: str) -> None:
    if not path.exists():
        print(f"Skipping {path} (not found)")
        return
    content, count = re.subn(pattern, replacement, path.read_text(), count=1, flags=re.M)
    if not count:
        raise ValueError(f"No version string found in {path}")
    path.write_text(content)
    print(f"Updated {path}")


def main():
    parser = argparse.ArgumentParser(description="Bump the actionchat version")
    parser.add_argument("bump_type", nargs="?", choices=["major", "minor", "patch"])
    parser.add_argument("--set", metavar="VERSION", help="Set specific version (e.g. 1.2.3 or 1.2.3-rc.1)")
    parser.add_argument("--pre", metavar="TYPE", choices=["alpha", "beta", "rc"])
    parser.add_argument("--dry-run", action="store_true", help="Show the new version without writing it")
    args = parser.parse_args()

    if args.set and args.bump_type:
        parser.error("Cannot use both --set and bump_type")
    if not args.set and not args.bump_type:
        parser.error("Must specify either --set or bump_type")

    project_root = Path(__file__).parent.parent
    try:
        current_version = get_current_version(project_root)
        if args.set:
            parse_version(args.set)
            new_version = args.set
        else:
            new_version = bump_version(current_version, args.bump_type, args.pre or "")
        print(f"{current_version} -> {new_version}")
        if args.dry_run:
            return 0

        update_file(project_root / VERSION_FILE, r'^__version__\s*=\s*"[^"]+"', f'__version__ = "{new_version}"')
        update_file(project_root / PYPROJECT_FILE, r'^version\s*=\s*"[^"]+"', f'version = "{new_version}"')
        return 0
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
