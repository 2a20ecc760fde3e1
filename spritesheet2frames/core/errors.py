"""Domain-specific exceptions for the sprite sheet extractor."""

from pathlib import Path


class InvalidSheetError(ValueError):
    """Raised when the selected sprite sheet is missing or unreadable."""

    def __init__(self, path: Path, reason: str | None = None):
        message = f"Invalid sprite sheet: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.path = Path(path)
        self.reason = reason


class ValidationError(ValueError):
    """Raised when user-provided settings fail validation."""


class ProcessingError(RuntimeError):
    """Raised when the pipeline hits an internal inconsistency."""
