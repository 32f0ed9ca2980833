"""Exception taxonomy and process exit codes for ProvenSkills.

Every error carries the exit code the CLI terminates with, so the
command layer maps failures without inspecting their type.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Optional


class ExitCode(enum.IntEnum):
    """Process exit statuses, one per failure class."""

    SUCCESS = 0
    GENERAL = 1
    VALIDATION = 2
    CONFLICT = 3
    IO = 4


class ProvenSkillsError(Exception):
    """Base error for all ProvenSkills failures."""

    exit_code: ExitCode = ExitCode.GENERAL


class FrontmatterError(ProvenSkillsError):
    """Raised when the SKILL.md frontmatter block cannot be extracted or decoded."""

    exit_code = ExitCode.VALIDATION


class MissingOpeningDelimiter(FrontmatterError):
    """The descriptor does not start with a --- line."""

    def __init__(self) -> None:
        super().__init__("missing opening --- delimiter")


class MissingClosingDelimiter(FrontmatterError):
    """No --- line closes the frontmatter block."""

    def __init__(self) -> None:
        super().__init__("missing closing --- delimiter")


class MalformedStructure(FrontmatterError):
    """The frontmatter block is not a decodable YAML mapping."""

    def __init__(self, cause: str) -> None:
        self.cause = cause
        super().__init__(f"failed to parse YAML frontmatter: {cause}")


class ValidationFailure(ProvenSkillsError):
    """One or more metadata rules were violated.

    Args:
        path: The skill directory that failed validation.
        errors: Every violation message, in rule order.
    """

    exit_code = ExitCode.VALIDATION

    def __init__(self, path: str, errors: list[str]) -> None:
        self.path = path
        self.errors = list(errors)
        super().__init__(f"validation failed for {path}")


class UnsafePathError(ProvenSkillsError):
    """A user-supplied path contains '..' segments."""

    exit_code = ExitCode.VALIDATION

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__("path contains '..' segments (path traversal not allowed)")


class ConflictError(ProvenSkillsError):
    """An artifact with the same name and version is already stored."""

    exit_code = ExitCode.CONFLICT

    def __init__(self, name: str, version: str) -> None:
        self.name = name
        self.version = version
        super().__init__(f"skill {name}@{version} already exists in store")


class StoreIOError(ProvenSkillsError):
    """A filesystem operation on the store or a skill directory failed.

    Args:
        message: What was being attempted.
        path: The path involved.
        cause: The underlying OS error, if any.
    """

    exit_code = ExitCode.IO

    def __init__(
        self, message: str, path: Path | str, cause: Optional[BaseException] = None
    ) -> None:
        self.path = Path(path)
        self.cause = cause
        detail = f"{message}: {path}"
        if cause is not None:
            detail = f"{detail}: {cause}"
        super().__init__(detail)


class SkillNotFoundError(StoreIOError):
    """The skill directory or its SKILL.md does not exist."""

    def __init__(self, path: Path | str) -> None:
        super().__init__("directory not found", path)


class ManifestIOError(StoreIOError):
    """manifest.json could not be read or written."""


class ManifestDecodeError(ProvenSkillsError):
    """manifest.json is not valid JSON or does not match the manifest schema."""

    exit_code = ExitCode.IO

    def __init__(self, path: Path | str, cause: str) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"failed to parse manifest {path}: {cause}")
