"""Metadata validation and version normalization for SKILL.md frontmatter.

Every rule runs on every call and contributes its own message, so one
invalid descriptor can report several independent problems at once.
Message prefixes (``name:``, ``description:``, ``metadata.version:``,
``metadata.author:``) are matched by callers and must stay stable.
"""

from __future__ import annotations

import re

from .models import SkillFrontmatter

NAME_MAX_LENGTH = 64
DESCRIPTION_MAX_LENGTH = 1024

NAME_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")
SEMVER_PATTERN = re.compile(r"^\d+\.\d+\.\d+$", re.ASCII)
MAJOR_MINOR_PATTERN = re.compile(r"^\d+\.\d+$", re.ASCII)


def _byte_length(value: str) -> int:
    """Length limits are measured in UTF-8 bytes."""
    return len(value.encode("utf-8"))


def validate_name(name: str, dir_name: str) -> list[str]:
    """Check the skill name against the naming rules and its directory."""
    if not name:
        return ["name: required field is missing"]

    errors: list[str] = []
    size = _byte_length(name)
    if size > NAME_MAX_LENGTH:
        errors.append(f"name: must be 1-{NAME_MAX_LENGTH} characters (got {size})")

    if "--" in name:
        errors.append("name: contains consecutive hyphens")
    elif not NAME_PATTERN.fullmatch(name):
        if name.lower() != name:
            errors.append("name: contains uppercase characters (must be lowercase)")
        elif name.startswith("-") or name.endswith("-"):
            errors.append("name: must not start or end with a hyphen")
        else:
            errors.append(
                f"name: {name!r} does not match required pattern [a-z0-9][a-z0-9-]*[a-z0-9]"
            )

    if name != dir_name:
        errors.append(f"name: {name!r} does not match directory name {dir_name!r}")

    return errors


def validate_description(description: str) -> list[str]:
    if not description:
        return ["description: required field is missing"]
    size = _byte_length(description)
    if size > DESCRIPTION_MAX_LENGTH:
        return [f"description: must be at most {DESCRIPTION_MAX_LENGTH} characters (got {size})"]
    return []


def validate_version(version: str) -> list[str]:
    if not version:
        return ["metadata.version: required field is missing"]
    if not is_valid_version(version):
        return [f"metadata.version: {version!r} is not valid semver"]
    return []


def validate_author(author: str) -> list[str]:
    if not author:
        return ["metadata.author: required field is missing"]
    return []


def validate(frontmatter: SkillFrontmatter, dir_name: str) -> list[str]:
    """Check parsed frontmatter against every metadata rule.

    Never raises; an empty list means the descriptor is valid.

    Args:
        frontmatter: The parsed SKILL.md header.
        dir_name: Base name of the directory holding the SKILL.md.

    Returns:
        list[str]: Human-readable, field-prefixed violations in rule order.
    """
    errors: list[str] = []
    errors.extend(validate_name(frontmatter.name, dir_name))
    errors.extend(validate_description(frontmatter.description))
    errors.extend(validate_version(frontmatter.metadata.version))
    errors.extend(validate_author(frontmatter.metadata.author))
    return errors


def is_valid_version(version: str) -> bool:
    """True for ``major.minor.patch`` or ``major.minor`` made of non-negative integers."""
    return bool(SEMVER_PATTERN.fullmatch(version) or MAJOR_MINOR_PATTERN.fullmatch(version))


def normalize_version(version: str) -> str:
    """Expand ``major.minor`` to ``major.minor.0``; return anything else unchanged.

    Normalization does not validate: invalid strings pass straight through.
    """
    if MAJOR_MINOR_PATTERN.fullmatch(version):
        return version + ".0"
    return version
