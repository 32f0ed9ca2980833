"""manifest.json codec — encode, decode, read and write artifact manifests."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from .errors import ManifestDecodeError, ManifestIOError
from .models import Manifest

MANIFEST_FILE = "manifest.json"


def encode_manifest(manifest: Manifest) -> bytes:
    """Serialize a manifest to indented JSON with a trailing newline.

    Keys use the on-disk camelCase names; unset optional fields are omitted.
    """
    data = manifest.model_dump(mode="json", by_alias=True, exclude_none=True)
    return (json.dumps(data, indent=2) + "\n").encode("utf-8")


def decode_manifest(data: bytes | str, source: Path | str = "<bytes>") -> Manifest:
    """Parse manifest JSON into a Manifest.

    Args:
        data: Raw manifest.json content.
        source: Where the data came from, used in error messages.

    Raises:
        ManifestDecodeError: If the data is not JSON or not a valid manifest.
    """
    try:
        raw = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ManifestDecodeError(source, str(exc)) from exc

    try:
        return Manifest.model_validate(raw)
    except ValidationError as exc:
        raise ManifestDecodeError(source, str(exc)) from exc


def write_manifest(path: Path, manifest: Manifest) -> None:
    """Write a manifest to ``path``.

    Raises:
        ManifestIOError: If the file cannot be written.
    """
    try:
        path.write_bytes(encode_manifest(manifest))
    except OSError as exc:
        raise ManifestIOError("failed to write manifest", path, exc) from exc


def read_manifest(path: Path) -> Manifest:
    """Read and parse a manifest.json file.

    Raises:
        ManifestIOError: If the file cannot be read.
        ManifestDecodeError: If its content is not a valid manifest.
    """
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ManifestIOError("failed to read manifest", path, exc) from exc
    return decode_manifest(data, source=path)
