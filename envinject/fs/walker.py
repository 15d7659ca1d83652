"""Target file enumeration and atomic in-place rewrites.

Symlink policy:
- follow_symlinks=False (default): links found inside a root are skipped,
  both links to files and links to directories. Only regular files are
  yielded. A configured root that is itself a link to a directory is still
  walked, since the operator named it explicitly.
- follow_symlinks=True: directory links are descended and file links are
  yielded. Each real directory is walked at most once so link cycles
  terminate.
"""

import errno
import logging
import os
import shutil
import stat
import tempfile
from pathlib import Path
from typing import Iterator

from envinject.exceptions import SubstitutionError


logger = logging.getLogger(__name__)

# stat failures that mean "nothing usable here" rather than "cannot look"
MISSING_ERRNOS = {errno.ENOENT, errno.ENOTDIR, errno.ELOOP}


def is_directory(path: Path) -> bool:
    """
    Whether path is an existing directory.

    Missing paths return False. Paths that cannot be examined at all
    (e.g. an unsearchable parent) raise instead of looking missing.

    Raises:
        SubstitutionError: stage 'directory' if path cannot be examined
    """
    try:
        return stat.S_ISDIR(path.stat().st_mode)
    except OSError as e:
        if e.errno in MISSING_ERRNOS:
            return False
        raise SubstitutionError('directory', path, e.strerror or str(e))


def iter_target_files(root: Path, follow_symlinks: bool = False) -> Iterator[Path]:
    """
    Recursively yield every target file under root, in sorted order.

    Args:
        root: Existing directory to walk
        follow_symlinks: Whether symbolic links are followed

    Yields:
        Paths of regular files (or links to them when following)

    Raises:
        SubstitutionError: stage 'directory' if a directory cannot be listed
    """
    def on_error(error: OSError):
        raise SubstitutionError('directory', Path(error.filename or root), error.strerror or str(error))

    visited_dirs = set()

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error, followlinks=follow_symlinks):
        if follow_symlinks:
            real_dir = os.path.realpath(dirpath)
            if real_dir in visited_dirs:
                dirnames[:] = []
                continue
            visited_dirs.add(real_dir)

        # Walk deterministically
        dirnames.sort()
        if not follow_symlinks:
            dirnames[:] = [d for d in dirnames if not os.path.islink(os.path.join(dirpath, d))]

        for name in sorted(filenames):
            path = Path(dirpath) / name
            if _is_target(path, follow_symlinks):
                yield path


def _is_target(path: Path, follow_symlinks: bool) -> bool:
    """Whether a directory entry is a file to process under the link policy."""
    try:
        mode = path.lstat().st_mode
        if stat.S_ISLNK(mode):
            if not follow_symlinks:
                logger.debug(f"Skipping symbolic link: {path}")
                return False
            try:
                mode = path.stat().st_mode
            except OSError as e:
                if e.errno not in MISSING_ERRNOS:
                    raise
                logger.debug(f"Skipping dangling symbolic link: {path}")
                return False
    except FileNotFoundError:
        # Removed after the directory was listed
        return False
    except OSError as e:
        raise SubstitutionError('directory', path, e.strerror or str(e))
    return stat.S_ISREG(mode)


def read_target(path: Path) -> bytes:
    """Read a target file's raw content."""
    try:
        return path.read_bytes()
    except OSError as e:
        raise SubstitutionError('read', path, e.strerror or str(e))


def write_in_place(path: Path, content: bytes) -> None:
    """
    Replace a file's content atomically.

    Writes to a temporary file in the same directory, copies the original
    permission bits and renames it over the target. A symlinked target is
    resolved first so the link itself is kept.

    Raises:
        SubstitutionError: stage 'write' on any I/O failure
    """
    target = Path(os.path.realpath(path))
    fd = None
    temp_path = None
    try:
        fd, temp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix='.tmp', dir=target.parent)
        temp_path = Path(temp_name)
        with os.fdopen(fd, 'wb') as f:
            fd = None
            f.write(content)
        shutil.copymode(target, temp_path)
        os.replace(temp_path, target)
        temp_path = None
    except OSError as e:
        raise SubstitutionError('write', path, e.strerror or str(e))
    finally:
        if fd is not None:
            os.close(fd)
        if temp_path is not None and temp_path.exists():
            temp_path.unlink()
