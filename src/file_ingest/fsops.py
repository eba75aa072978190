"""Filesystem helpers: relocating entries into the sink directories."""

import errno
import os
import shutil
from pathlib import Path

from loguru import logger

from .errors import RelocationError

log = logger.bind(stage="fsops")


def _is_real_dir(path: Path) -> bool:
    return path.is_dir() and not path.is_symlink()


def _clear_target(target: Path) -> None:
    """Remove whatever currently occupies ``target``."""
    if _is_real_dir(target):
        shutil.rmtree(target)
    elif target.is_symlink() or target.exists():
        target.unlink()


def relocate(source: Path, target_dir: Path) -> Path:
    """Move ``source`` into ``target_dir``, replacing a same-named entry.

    Replacing makes a repeated relocation of the same name idempotent.
    Uses an atomic rename when possible and falls back to shutil.move
    across filesystems (EXDEV). Returns the destination path.

    Raises RelocationError if the move fails; the source stays where it was.
    """
    target = target_dir / source.name
    log.debug(f"relocate(source={source}, target_dir={target_dir})")

    try:
        # os.replace cannot overwrite a directory with a file or vice versa
        if _is_real_dir(source) or _is_real_dir(target):
            _clear_target(target)
        try:
            os.replace(source, target)
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise
            log.debug(f"Cross-device move, falling back to copy: {source.name}")
            _clear_target(target)
            shutil.move(str(source), str(target))
    except OSError as e:
        raise RelocationError(source, target_dir, e) from e

    return target
