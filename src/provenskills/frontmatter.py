"""Frontmatter extraction — split the YAML header off a SKILL.md descriptor.

A descriptor looks like:

    ---
    name: my-skill
    description: What it does
    metadata:
      version: "1.0"
      author: someone
    ---

    # Body (never inspected)

Only the first "\\n---" after the opening delimiter closes the block, so
horizontal rules in the body are never mistaken for delimiters.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from .errors import MalformedStructure, MissingClosingDelimiter, MissingOpeningDelimiter
from .models import SkillFrontmatter

DELIMITER = "---"
SKILL_FILE = "SKILL.md"


def split_frontmatter(text: str) -> str:
    """Return the raw YAML text between the frontmatter delimiters.

    Raises:
        MissingOpeningDelimiter: If the trimmed text does not start with ---.
        MissingClosingDelimiter: If no newline followed by --- closes the block.
    """
    trimmed = text.strip()
    if not trimmed.startswith(DELIMITER):
        raise MissingOpeningDelimiter()

    rest = trimmed[len(DELIMITER):]
    end = rest.find("\n" + DELIMITER)
    if end == -1:
        raise MissingClosingDelimiter()
    return rest[:end]


def parse_frontmatter(text: str) -> SkillFrontmatter:
    """Parse the frontmatter of a descriptor into a SkillFrontmatter.

    An empty block yields a SkillFrontmatter with every field empty.

    Args:
        text: Full SKILL.md content.

    Returns:
        SkillFrontmatter: The decoded header.

    Raises:
        FrontmatterError: If the delimiters are missing or the block is not
            a YAML mapping of the expected shape.
    """
    block = split_frontmatter(text)

    try:
        # BaseLoader keeps every scalar as its literal text (no 1.10 -> 1.1).
        raw = yaml.load(block, Loader=yaml.BaseLoader)
    except yaml.YAMLError as exc:
        raise MalformedStructure(str(exc)) from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise MalformedStructure(f"frontmatter must be a YAML mapping, got {type(raw).__name__}")

    try:
        return SkillFrontmatter.model_validate(raw)
    except ValidationError as exc:
        raise MalformedStructure(str(exc)) from exc


def read_frontmatter(path: Path) -> SkillFrontmatter:
    """Read a SKILL.md file from disk and parse its frontmatter.

    Raises:
        OSError: If the file cannot be read.
        FrontmatterError: If the content has no valid frontmatter.
    """
    return parse_frontmatter(path.read_text(encoding="utf-8"))
