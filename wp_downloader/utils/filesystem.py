"""Filesystem utilities for wp-downloader."""

import shutil
from pathlib import Path


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists

    Returns:
        The directory path
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def remove_directory(path: Path) -> bool:
    """Remove a directory and its contents.

    Args:
        path: Directory path to remove

    Returns:
        True if the directory was removed, False if it didn't exist
    """
    if not path.is_dir():
        return False
    shutil.rmtree(path)
    return True


def remove_file(path: Path) -> bool:
    """Remove a file.

    Args:
        path: File path to remove

    Returns:
        True if the file was removed, False if it didn't exist
    """
    if not path.is_file():
        return False
    path.unlink()
    return True


def list_files(path: Path) -> list[Path]:
    """List regular files directly inside a directory (not recursive).

    Args:
        path: Directory to list

    Returns:
        Sorted list of file paths; empty if the directory doesn't exist
    """
    if not path.is_dir():
        return []
    return sorted(p for p in path.iterdir() if p.is_file())


def copy_then_remove(src: Path, dest: Path) -> Path:
    """Move a directory's contents into another directory.

    Content is copied first and the source removed afterwards. Existing files
    in the destination are overwritten; other existing entries are kept.

    Args:
        src: Source directory
        dest: Destination directory (created if missing)

    Returns:
        The destination path
    """
    shutil.copytree(src, dest, dirs_exist_ok=True)
    shutil.rmtree(src)
    return dest


def find_content_root(extract_dir: Path) -> Path:
    """Find the directory holding an extracted archive's payload.

    Archives that wrap everything in a single top-level directory (like
    ``wordpress/``) return that directory, otherwise ``extract_dir`` itself.
    macOS metadata and other hidden entries are ignored.

    Args:
        extract_dir: Directory an archive was extracted into

    Returns:
        Path to the content root
    """
    contents = [p for p in extract_dir.iterdir() if not p.name.startswith((".", "__MACOSX"))]
    if len(contents) == 1 and contents[0].is_dir():
        return contents[0]
    return extract_dir
