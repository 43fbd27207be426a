"""Persist the catalog document for the presentation layer."""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from pathlib import Path

from .models import CatalogDocument

logger = logging.getLogger(__name__)


def _published_mode(output_path: Path) -> int:
    """Mode for the new document: the existing file's, else 0666 minus umask."""

    try:
        return stat.S_IMODE(output_path.stat().st_mode)
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_document(document: CatalogDocument, output_path: Path) -> Path:
    """Replace ``output_path`` atomically with the serialized document.

    The payload goes to a temp file beside the target first, so readers never
    see a half-written document and a failed write leaves the old one intact.
    """

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    mode = _published_mode(output_path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{output_path.name}.", suffix=".tmp", dir=output_path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(document.to_json(indent=2))
            fh.write("\n")
        # mkstemp creates 0600
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, output_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info("wrote %s", output_path)
    return output_path


__all__ = ["write_document"]
