"""Format version constants for saved and shared circuits.

Version Mismatch Policy:
    - The major version must match; minor revisions stay readable
    - A missing version is treated as the current one (early saves omitted it)
"""

from __future__ import annotations

from circuplay.exceptions import FormatVersionError

# Exported circuit document version ({"version", "cellSize", "components"})
CIRCUIT_FORMAT_VERSION = "1.0"

# Compact share-code payload version ({"v", "g", "c"})
SHARE_CODE_VERSION = "1.0"


def _major(version: str) -> str:
    return version.split(".", 1)[0]


def validate_format_version(version: str | None, expected: str = CIRCUIT_FORMAT_VERSION) -> None:
    """Validate a circuit document version.

    Raises:
        FormatVersionError: If the major version differs or is not a string
    """
    if version is None:
        return
    if not isinstance(version, str):
        raise FormatVersionError(f"Version must be a string, got {type(version).__name__}")
    if _major(version) != _major(expected):
        raise FormatVersionError(f"Version mismatch: expected {expected}, got {version}")
