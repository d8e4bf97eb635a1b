"""File operations used by routing: hashing, copy-then-delete, directory setup."""

import hashlib
import logging
from pathlib import Path

import aiofiles
import aiofiles.os

logger = logging.getLogger(__name__)


CHUNK_SIZE = 64 * 1024


async def compute_sha256(path: Path | str) -> str:
    """Lowercase hex SHA-256 digest of a file's contents."""
    hasher = hashlib.sha256()
    async with aiofiles.open(path, "rb") as f:
        while True:
            chunk = await f.read(CHUNK_SIZE)
            if not chunk:
                break
            hasher.update(chunk)
    return hasher.hexdigest()


async def copy_then_delete(source: Path | str, destination: Path | str) -> None:
    """
    Copy source to destination, then remove source.

    Not atomic across a crash. If the copy fails the source is left intact
    (the destination may be partial); if the delete fails both files exist
    and the OSError propagates to the caller.
    """
    async with aiofiles.open(source, "rb") as src:
        async with aiofiles.open(destination, "wb") as dst:
            while True:
                chunk = await src.read(CHUNK_SIZE)
                if not chunk:
                    break
                await dst.write(chunk)
    await aiofiles.os.remove(source)
    logger.debug(f"Moved file: {source} -> {destination}")


async def ensure_directory(path: Path | str) -> bool:
    """
    Create a directory (and parents) if missing.

    Returns:
        True if the directory was created
    """
    if await aiofiles.os.path.isdir(path):
        return False
    await aiofiles.os.makedirs(path, exist_ok=True)
    logger.info(f"Created directory {path}")
    return True


async def list_files(directory: Path | str) -> list[Path]:
    """Regular files directly inside a directory, sorted by name."""
    names = await aiofiles.os.listdir(directory)
    files = []
    for name in sorted(names):
        path = Path(directory) / name
        if await aiofiles.os.path.isfile(path):
            files.append(path)
    return files
