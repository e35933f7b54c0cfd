"""Removal of staged upload files.

Every file staged for a request is removed once the request is done, whatever
the outcome. Removals are independent, so they are issued concurrently and
awaited together. A failed removal is logged and never re-raised into the
request pipeline.
"""
import asyncio
import logging
from pathlib import Path

import aiofiles.os

from .schemas import UploadContext, staged_files

logger = logging.getLogger(__name__)


async def _remove(path: Path) -> None:
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        logger.debug(f"Staged file already removed: {path}")
    except OSError as e:
        logger.warning(f"Failed to remove staged file {path}: {e}")
    else:
        logger.debug(f"Removed staged file: {path}")


async def cleanup_uploaded_files(context: UploadContext) -> None:
    """Remove every staged file referenced by *context*.

    Safe to call more than once and on an empty context.
    """
    paths = list(dict.fromkeys(f.path for f in staged_files(context)))
    if not paths:
        return

    await asyncio.gather(*(_remove(path) for path in paths))
