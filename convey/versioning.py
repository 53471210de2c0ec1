"""
Semantic version comparison used for staleness gating.

Versions may carry a leading ``v`` or ``=`` (``"v1.2.0"``), as written by
npm-style release tooling; the prefix is ignored when comparing.
"""

import semver

from convey.exceptions import InvalidVersionError

DEFAULT_VERSION = "0.0.0"

VERSION_PREFIXES = ("v", "V", "=")


def parse_version(version: str) -> semver.Version:
    """
    Parse a semantic version string.

    Args:
        version: Version string such as ``"1.2.3"``, ``"v1.2.3"`` or ``"2.0.0-rc.1"``

    Returns:
        Parsed semver.Version

    Raises:
        InvalidVersionError: If the string is not a valid semantic version
    """
    if not isinstance(version, str):
        raise InvalidVersionError(version)
    text = version.strip()
    if text[:1] in VERSION_PREFIXES:
        text = text[1:]
    try:
        return semver.Version.parse(text)
    except ValueError as e:
        raise InvalidVersionError(version) from e


def compare(left: str, right: str) -> int:
    """Compare two version strings, returning -1, 0 or 1."""
    return parse_version(left).compare(parse_version(right))


def is_fresh(stored: str | None, target: str) -> bool:
    """
    Check whether a stored version already satisfies the target version.

    A missing stored version counts as ``0.0.0``.
    """
    return compare(stored or DEFAULT_VERSION, target) >= 0
