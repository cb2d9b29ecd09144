"""Exception hierarchy for outliner."""

from pathlib import Path


class OutlinerError(Exception):
    """Base exception for all outliner errors.

    All exceptions in this package inherit from this class,
    allowing callers to catch all outliner errors with
    a single except clause.
    """

    pass


# Configuration Errors
class ConfigError(OutlinerError):
    """Configuration-related errors."""

    pass


class ConfigParseError(ConfigError):
    """Configuration file has invalid syntax."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid config at {path}: {detail}")


class ConfigValidationError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: object, reason: str) -> None:
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


# Outline Errors
class OutlineError(OutlinerError):
    """Outline file errors."""

    pass


class OutlineNotFoundError(OutlineError):
    """Outline file doesn't exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Outline not found: {path}")


class OutlineParseError(OutlineError):
    """Outline file is not valid outline JSON."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Invalid outline at {path}: {detail}")


# Search Errors
class SearchError(OutlinerError):
    """Search-related errors."""

    pass


class QuerySyntaxError(SearchError):
    """A search query cannot be parsed.

    Always recoverable: callers show the message inline and may fall back
    to a plain substring search on the raw query.

    Attributes:
        message: Short description of the problem.
        token: The offending query fragment, for display to the user.
        position: Character offset of the offending token in the query, when known.
    """

    def __init__(self, message: str, token: str, position: int | None = None) -> None:
        self.message = message
        self.token = token
        self.position = position
        super().__init__(f"{message}: '{token}'")
