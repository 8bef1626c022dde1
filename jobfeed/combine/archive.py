"""Gzip compression of finished artifacts."""

import gzip
import os
import shutil
from pathlib import Path
from typing import Optional, Union

FILE_MODE = 0o644


def gzip_file(
    source: Union[str, Path],
    target: Optional[Union[str, Path]] = None,
    compresslevel: int = 9,
) -> Path:
    """
    Compress ``source`` to ``target`` (default ``<source>.gz``) by streaming.

    The archive is written beside the target under a temporary name and
    moved into place once complete.

    Returns:
        Path of the compressed file
    """
    source = Path(source)
    target = Path(target) if target else source.with_name(source.name + ".gz")
    partial = target.with_name(target.name + ".part")

    try:
        with open(source, "rb") as src, gzip.open(partial, "wb", compresslevel=compresslevel) as dst:
            shutil.copyfileobj(src, dst)
        os.replace(partial, target)
    finally:
        if partial.exists():
            partial.unlink()

    os.chmod(target, FILE_MODE)
    return target
