"""
Metadata Reader.

Republishes the `[meta]` table of the project's TOML descriptor
(deepgram.toml by default). The file is read on every request so edits
show up without a restart.
"""
from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Dict

from tts_gateway.core.logging import error, get_logger
from tts_gateway.services.errors import InternalServerError

_LOG = get_logger("tts-gateway.metadata")


class MetadataReader:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read(self) -> Dict[str, Any]:
        """
        Read the document and return its `meta` table.

        Raises:
            InternalServerError: If the file cannot be read or parsed, or
                has no `meta` table.
        """
        try:
            with self.path.open("rb") as f:
                document = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            error(_LOG, "metadata_read_failed", path=str(self.path), error=str(e))
            raise InternalServerError(f"Failed to read metadata from {self.path.name}") from e

        meta = document.get("meta")
        if not isinstance(meta, dict):
            error(_LOG, "metadata_missing_section", path=str(self.path))
            raise InternalServerError(f"Missing [meta] section in {self.path.name}")
        return meta
