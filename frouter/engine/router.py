"""FileRouter - decides where a file goes and moves it there."""

import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional

import aiofiles.os

from ..errors import HashError, MoveError
from ..models import Configuration, MoveRecord
from ..storage.files import compute_sha256, copy_then_delete, ensure_directory

logger = logging.getLogger(__name__)


Mover = Callable[[Path, Path], Awaitable[None]]
Hasher = Callable[[Path], Awaitable[str]]


class FileRouter:
    """
    Routes a single file to the destination of its extension.

    Collisions are resolved by content: if a file with the same name and
    the same digest already sits in the destination, that file is the
    target; otherwise "_1", "_2", ... is appended to the stem until a free
    or content-identical name is found.
    """

    def __init__(self, mover: Mover = copy_then_delete, hasher: Hasher = compute_sha256):
        self.mover = mover
        self.hasher = hasher

    def find_destination(self, path: Path, config: Configuration) -> Optional[Path]:
        """Destination directory for a file, or None if no extension matches."""
        extension = config.find_extension(path)
        if extension is None:
            return None
        return extension.path

    async def unique_target(self, source: Path, target_dir: Path) -> Path:
        """Resolve a collision-free (or content-identical) target path."""
        candidate = target_dir / source.name
        if not await aiofiles.os.path.exists(candidate):
            return candidate

        source_hash = await self._digest(source)
        if await self._digest(candidate) == source_hash:
            return candidate

        counter = 1
        while True:
            candidate = target_dir / f"{source.stem}_{counter}{source.suffix}"
            if not await aiofiles.os.path.exists(candidate):
                return candidate
            if await self._digest(candidate) == source_hash:
                return candidate
            counter += 1

    async def route(self, path: Path, config: Configuration) -> Optional[MoveRecord]:
        """
        Move one file to its destination.

        Returns:
            The MoveRecord to log, or None if there was nothing to do
            (file vanished, no matching extension, already in place)

        Raises:
            MoveError: If the destination cannot be prepared or the move fails
            HashError: If a digest cannot be computed
        """
        path = Path(path)
        if not await aiofiles.os.path.isfile(path):
            logger.debug(f"Skipping vanished path: {path}")
            return None

        target_dir = self.find_destination(path, config)
        if target_dir is None:
            logger.debug(f"No extension configured for {path.name}")
            return None

        try:
            await ensure_directory(target_dir)
        except OSError as e:
            raise MoveError(path, target_dir, f"cannot create destination: {e}") from e

        target = await self.unique_target(path, target_dir)
        if await _same_file(path, target):
            logger.debug(f"Already in place: {path}")
            return None

        try:
            await self.mover(path, target)
        except OSError as e:
            raise MoveError(path, target, str(e)) from e

        filehash = await self._digest(target)
        logger.info(f"Moved {path} -> {target}")
        return MoveRecord.for_move(path, target, filehash)

    async def _digest(self, path: Path) -> str:
        try:
            return await self.hasher(path)
        except OSError as e:
            raise HashError(path, str(e)) from e


async def _same_file(a: Path, b: Path) -> bool:
    if a == b:
        return True
    try:
        return await aiofiles.os.path.samefile(a, b)
    except OSError:
        return False
