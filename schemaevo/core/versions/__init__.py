from .version import ApiVersion, Level, VersionParseError, parse_version
from .registry import (
    RegisteredVersion,
    VersionDefinition,
    VersionRegistry,
    check_version_definitions,
)

__all__ = [
    "ApiVersion",
    "Level",
    "VersionParseError",
    "parse_version",
    "RegisteredVersion",
    "VersionDefinition",
    "VersionRegistry",
    "check_version_definitions",
]
