"""
Semantic version helpers for legal documents.
Versions are plain MAJOR.MINOR.PATCH strings; text ordering in the database
would put "1.0.10" before "1.0.9", so comparisons happen here.
"""

from typing import Iterable, Optional, Tuple
import re

INITIAL_VERSION = "1.0.0"

_SEMVER = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")


def parse_version(version: str) -> Tuple[int, int, int]:
    match = _SEMVER.match(version.strip())
    if not match:
        raise ValueError(f"Invalid version '{version}', expected MAJOR.MINOR.PATCH")
    return tuple(int(part) for part in match.groups())


def next_patch(version: str) -> str:
    major, minor, patch = parse_version(version)
    return f"{major}.{minor}.{patch + 1}"


def latest_version(versions: Iterable[str]) -> Optional[str]:
    """Highest valid version, ignoring malformed values"""
    valid = []
    for version in versions:
        try:
            valid.append((parse_version(version), version))
        except ValueError:
            continue
    return max(valid)[1] if valid else None
