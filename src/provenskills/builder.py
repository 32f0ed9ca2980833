"""Build and validate pipelines — the operations behind ``psk build`` and ``psk validate``.

    load_descriptor -> validate -> normalize_version -> Manifest -> ArtifactStore.add

Each step raises a ProvenSkillsError subclass; the CLI turns those into
messages and exit codes.
"""

from __future__ import annotations

import datetime as dt
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .errors import (
    ConflictError,
    SkillNotFoundError,
    StoreIOError,
    UnsafePathError,
    ValidationFailure,
)
from .frontmatter import SKILL_FILE, read_frontmatter
from .models import Manifest, ManifestContents, SkillFrontmatter
from .store import ArtifactStore
from .validation import normalize_version, validate

logger = logging.getLogger("provenskills.builder")


class ValidationReport(BaseModel):
    """Outcome of validating one skill directory."""

    path: str = Field(description="The skill directory as given by the caller")
    dir_name: str = Field(description="Base name the skill name must match")
    frontmatter: SkillFrontmatter
    errors: list[str] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def version(self) -> str:
        """The descriptor's version, normalized to major.minor.patch."""
        return normalize_version(self.frontmatter.metadata.version)


class BuildResult(BaseModel):
    """A skill that was committed to the store."""

    manifest: Manifest
    path: str = Field(description="Stored artifact directory")


def check_path(path: Path | str) -> None:
    """Reject paths that contain '..' segments after normalization.

    Raises:
        UnsafePathError: If the path escapes upward.
    """
    if ".." in Path(os.path.normpath(path)).parts:
        raise UnsafePathError(str(path))


def skill_dir_name(path: Path | str) -> str:
    """Base name of the skill directory, resolving '.' and trailing slashes."""
    return Path(os.path.abspath(path)).name


def load_descriptor(path: Path | str) -> SkillFrontmatter:
    """Read and parse the SKILL.md inside a skill directory.

    Raises:
        UnsafePathError: If the path contains '..' segments.
        SkillNotFoundError: If the directory has no SKILL.md.
        StoreIOError: If SKILL.md exists but cannot be read.
        FrontmatterError: If SKILL.md has no valid frontmatter.
    """
    check_path(path)
    skill_md = Path(path) / SKILL_FILE
    if not skill_md.is_file():
        raise SkillNotFoundError(path)

    try:
        return read_frontmatter(skill_md)
    except (OSError, UnicodeDecodeError) as exc:
        raise StoreIOError(f"failed to read {SKILL_FILE}", skill_md, exc) from exc


def check_skill_dir(path: Path | str) -> ValidationReport:
    """Validate a skill directory without touching the store.

    Returns:
        ValidationReport: The parsed frontmatter and every rule violation.
    """
    frontmatter = load_descriptor(path)
    dir_name = skill_dir_name(path)
    return ValidationReport(
        path=str(path),
        dir_name=dir_name,
        frontmatter=frontmatter,
        errors=validate(frontmatter, dir_name),
    )


def build_skill(
    path: Path | str,
    maintainer: str,
    store: ArtifactStore,
    force: bool = False,
    now: Optional[dt.datetime] = None,
) -> BuildResult:
    """Validate a skill directory and commit it to the store.

    Args:
        path: Skill directory containing SKILL.md.
        maintainer: Identity of whoever is packaging the skill.
        store: Target artifact store.
        force: Replace an existing artifact with the same name and version.
        now: Build timestamp (default: current UTC time).

    Returns:
        BuildResult: The written manifest and the stored path.

    Raises:
        ValidationFailure: If the descriptor or the maintainer is invalid.
        ConflictError: If the artifact exists and force is False.
        StoreIOError: On any filesystem failure.
    """
    if not maintainer.strip():
        raise ValidationFailure(str(path), ["maintainer: required field is missing"])

    report = check_skill_dir(path)
    if not report.valid:
        raise ValidationFailure(report.path, report.errors)

    fm = report.frontmatter
    version = report.version

    store.initialize()
    if not force and store.exists(fm.name, version):
        raise ConflictError(fm.name, version)

    manifest = Manifest(
        name=fm.name,
        version=version,
        description=fm.description,
        author=fm.metadata.author,
        maintainer=maintainer,
        build_timestamp=now or dt.datetime.now(dt.timezone.utc),
        contents=ManifestContents(skill_file=SKILL_FILE),
    )

    dest = store.add(fm.name, version, Path(path), manifest, force=force)
    logger.info("Built %s@%s (maintainer: %s)", fm.name, version, maintainer)
    return BuildResult(manifest=manifest, path=str(dest))
