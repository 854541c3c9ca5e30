"""Temp-file staging and atomic replacement.

Every edit writes to a temporary sibling of the target. ``staged_file``
guarantees the temporary file is gone when its block exits, whether the
edit was committed, abandoned as a no-op, or failed with an exception.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"


@contextmanager
def staged_file(target: str | Path) -> Iterator[Path]:
    """Create an empty temp file next to ``target`` and remove it on exit.

    If the caller moved the temp file into place with ``atomic_replace``,
    there is nothing left to remove.
    """
    target = Path(target)
    fd, name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=TEMP_SUFFIX)
    os.close(fd)
    temp = Path(name)
    try:
        yield temp
    finally:
        try:
            temp.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temporary file {temp}: {e}")


def atomic_replace(target: str | Path, temp: str | Path) -> None:
    """Swap a fully written temp file into place.

    A missing target is a plain rename. Otherwise the target is moved to a
    sidecar name first, the temp file takes its place, and the sidecar is
    deleted. If the second rename fails the sidecar is moved back, so the
    original content is never lost.

    Raises:
        OSError: If the swap fails (the original file is restored)
    """
    target = Path(target)
    temp = Path(temp)

    if not target.exists():
        os.replace(temp, target)
        logger.debug(f"Created {target}")
        return

    try:
        shutil.copymode(target, temp)
    except OSError as e:
        logger.debug(f"Could not copy permissions from {target}: {e}")

    sidecar = target.with_name(f".{target.name}.{uuid.uuid4().hex[:8]}.old{TEMP_SUFFIX}")
    os.replace(target, sidecar)
    try:
        os.replace(temp, target)
    except OSError:
        os.replace(sidecar, target)
        raise

    try:
        sidecar.unlink()
    except OSError as e:
        logger.warning(f"Could not remove sidecar file {sidecar}: {e}")
    logger.debug(f"Replaced {target}")


def create_backup(path: str | Path, now: datetime | None = None) -> Path:
    """Copy ``path`` to ``path.YYYYmmddHHMMSS.bak`` and return the backup path."""
    path = Path(path)
    stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    backup = path.with_name(f"{path.name}.{stamp}.bak")
    shutil.copy2(path, backup)
    logger.info(f"Created backup: {backup}")
    return backup
