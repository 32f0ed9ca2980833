"""ProvenSkills Artifact Store — local, versioned storage for built skills.

Directory layout:
    ~/.psk/store/
        .store-version          # Store format marker ("1")
        my-skill/
            1.0.0/
                SKILL.md        # Full copy of the source directory
                scripts/
                manifest.json   # Generated at build time
            1.1.0/
                ...
        other-skill/
            ...

Artifacts are committed by copying into a temporary sibling directory and
renaming it onto ``{name}/{version}``. A reader never sees a half-copied
artifact; two concurrent builds of the same pair are not serialized.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from . import STORE_ENV_VAR, STORE_HOME
from .errors import (
    ConflictError,
    ManifestDecodeError,
    ManifestIOError,
    StoreIOError,
)
from .manifest import MANIFEST_FILE, read_manifest, write_manifest
from .models import Manifest

logger = logging.getLogger("provenskills.store")

STORE_VERSION = "1"
STORE_VERSION_FILE = ".store-version"


def resolve_store_root(
    explicit: Optional[Path | str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Path:
    """Resolve the store root: explicit override, then PSK_STORE, then ~/.psk/store.

    Args:
        explicit: A caller-supplied root (e.g. the --store option).
        environ: Environment to consult (default: os.environ).

    Returns:
        Path: The store root directory.
    """
    if explicit:
        return Path(explicit).expanduser()
    env = (os.environ if environ is None else environ).get(STORE_ENV_VAR)
    if env:
        return Path(env).expanduser()
    return Path(STORE_HOME).expanduser()


class ArtifactStore:
    """Stores built skills under ``{root}/{name}/{version}/``.

    Args:
        root: Store root directory, resolved once by the caller.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self.version_file = self.root / STORE_VERSION_FILE

    def initialize(self) -> None:
        """Create the store root and its format marker if they don't exist.

        Safe to call repeatedly; an existing marker is left untouched.

        Raises:
            StoreIOError: If the directory or marker cannot be created.
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreIOError("failed to create store directory", self.root, exc) from exc

        if not self.version_file.exists():
            try:
                self.version_file.write_text(STORE_VERSION + "\n")
            except OSError as exc:
                raise StoreIOError(
                    f"failed to write {STORE_VERSION_FILE}", self.version_file, exc
                ) from exc
            logger.info("Initialized store at %s", self.root)

    def artifact_path(self, name: str, version: str) -> Path:
        """Return where the artifact for ``name@version`` lives (or would live)."""
        return self.root / name / version

    def exists(self, name: str, version: str) -> bool:
        """Check whether ``name@version`` is already stored."""
        return self.artifact_path(name, version).is_dir()

    def add(
        self,
        name: str,
        version: str,
        source: Path,
        manifest: Manifest,
        force: bool = False,
    ) -> Path:
        """Copy a skill directory into the store and write its manifest.

        The copy lands in ``{dest}.tmp.{pid}`` first and is renamed onto the
        destination only once the manifest is written. Any failure before
        the rename removes the temporary directory and leaves the store as
        it was.

        Args:
            name: Skill name.
            version: Normalized skill version.
            source: Skill directory to copy.
            manifest: Manifest to write as manifest.json.
            force: Replace an existing artifact for the same pair.

        Returns:
            Path: The stored artifact directory.

        Raises:
            ConflictError: If the artifact exists and force is False.
            StoreIOError: If copying, writing or renaming fails.
        """
        dest = self.artifact_path(name, version)
        if not force and self.exists(name, version):
            raise ConflictError(name, version)

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreIOError("failed to create skill directory", dest.parent, exc) from exc

        tmp = dest.with_name(f"{dest.name}.tmp.{os.getpid()}")
        committed = False
        try:
            try:
                if tmp.exists():
                    shutil.rmtree(tmp)
                shutil.copytree(source, tmp)
            except OSError as exc:
                raise StoreIOError("failed to copy skill files", source, exc) from exc

            write_manifest(tmp / MANIFEST_FILE, manifest)

            if force and dest.exists():
                try:
                    shutil.rmtree(dest)
                except OSError as exc:
                    raise StoreIOError("failed to remove existing artifact", dest, exc) from exc

            try:
                os.rename(tmp, dest)
            except OSError as exc:
                raise StoreIOError("failed to move artifact to store", dest, exc) from exc
            committed = True
        finally:
            if not committed and tmp.exists():
                logger.debug("Removing temporary directory %s", tmp)
                shutil.rmtree(tmp, ignore_errors=True)

        logger.info("Stored %s@%s at %s", name, version, dest)
        return dest

    def list(self) -> list[Manifest]:
        """Return the manifest of every stored artifact, sorted by (name, version).

        Ordering is plain string comparison, so "10.0.0" sorts before "2.0.0".
        Entries whose manifest.json is missing or unparsable are skipped.

        Raises:
            StoreIOError: If the store root exists but cannot be read.
        """
        manifests: list[Manifest] = []
        if not self.root.exists():
            return manifests

        try:
            name_dirs = [p for p in self.root.iterdir() if p.is_dir()]
        except OSError as exc:
            raise StoreIOError("failed to read store", self.root, exc) from exc

        for name_dir in name_dirs:
            try:
                version_dirs = [p for p in name_dir.iterdir() if p.is_dir()]
            except OSError:
                logger.debug("Skipping unreadable skill directory %s", name_dir)
                continue

            for version_dir in version_dirs:
                try:
                    manifests.append(read_manifest(version_dir / MANIFEST_FILE))
                except (ManifestIOError, ManifestDecodeError) as exc:
                    logger.debug("Skipping %s: %s", version_dir, exc)
                    continue

        manifests.sort(key=lambda m: (m.name, m.version))
        return manifests
