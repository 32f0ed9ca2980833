"""ProvenSkills data models — SKILL.md frontmatter and manifest.json as Pydantic models.

Two records flow through a build:
  - SkillFrontmatter: the YAML header of a SKILL.md, parsed on every invocation
  - Manifest: the metadata sidecar written once next to each stored artifact
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

MANIFEST_VERSION = 1
"""Schema tag written into every manifest.json."""

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _none_to_empty(value: Any) -> Any:
    """Map a missing value to the empty string."""
    return "" if value is None else value


class SkillMetadata(BaseModel):
    """The nested ``metadata`` block of the frontmatter."""

    version: str = Field(default="", description="Author-supplied version (major.minor[.patch])")
    author: str = Field(default="", description="Original author of the skill content")

    @field_validator("version", "author", mode="before")
    @classmethod
    def empty_if_none(cls, v: Any) -> Any:
        return _none_to_empty(v)


class SkillFrontmatter(BaseModel):
    """The YAML frontmatter of a SKILL.md descriptor.

    Every field defaults to empty so that an empty header still parses;
    required-field checks belong to the validator, not to the model.
    License, compatibility and allowed-tools are carried through untouched.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="", description="Skill identifier, must equal the directory name")
    description: str = Field(default="", description="Human-readable summary")
    license: str = ""
    compatibility: str = ""
    metadata: SkillMetadata = Field(default_factory=SkillMetadata)
    allowed_tools: str = Field(default="", alias="allowed-tools")

    @field_validator(
        "name", "description", "license", "compatibility", "allowed_tools", mode="before"
    )
    @classmethod
    def empty_if_none(cls, v: Any) -> Any:
        return _none_to_empty(v)

    @field_validator("metadata", mode="before")
    @classmethod
    def default_metadata(cls, v: Any) -> Any:
        """Treat a bare ``metadata:`` key as an empty block."""
        return {} if v is None or v == "" else v


class ManifestContents(BaseModel):
    """File categories shipped in an artifact.

    Only ``skill_file`` is filled by the build; the lists are reserved.
    """

    model_config = ConfigDict(populate_by_name=True)

    skill_file: Optional[str] = Field(default=None, alias="skillFile")
    scripts: Optional[list[str]] = None
    references: Optional[list[str]] = None
    assets: Optional[list[str]] = None


class Manifest(BaseModel):
    """Metadata for one stored artifact — persisted as manifest.json.

    ``author`` wrote the skill; ``maintainer`` is whoever packaged it.
    The manifest is written once at build time and never edited in place.
    """

    model_config = ConfigDict(populate_by_name=True)

    manifest_version: int = Field(default=MANIFEST_VERSION, alias="manifestVersion")
    name: str
    version: str = Field(description="Normalized version (major.minor.patch)")
    description: str
    author: str
    maintainer: str
    build_timestamp: dt.datetime = Field(alias="buildTimestamp")
    contents: ManifestContents = Field(default_factory=ManifestContents)
    source_hash: Optional[str] = Field(default=None, alias="sourceHash")

    @field_validator("build_timestamp")
    @classmethod
    def to_utc_seconds(cls, v: dt.datetime) -> dt.datetime:
        """Pin timestamps to UTC at second precision; naive values are taken as UTC."""
        if v.tzinfo is None:
            v = v.replace(tzinfo=dt.timezone.utc)
        return v.astimezone(dt.timezone.utc).replace(microsecond=0)

    @field_serializer("build_timestamp")
    def format_timestamp(self, v: dt.datetime) -> str:
        return v.strftime(RFC3339_FORMAT)

    @property
    def key(self) -> tuple[str, str]:
        """The store's uniqueness key."""
        return (self.name, self.version)
