"""Content fingerprint of a Go source tree.

The fingerprint is handed to CDK as the custom asset hash: two equal
fingerprints mean the Lambda code does not need to be rebuilt or
redeployed.
"""

import hashlib
import logging
import os
import re
import time
from pathlib import Path
from typing import Collection, List, Optional, Union

from .deployment_config import RELEVANT_FILE_PATTERN
from .errors import BuildCacheError

logger = logging.getLogger(__name__)

RELEVANT_FILES = re.compile(RELEVANT_FILE_PATTERN)

CHUNK_SIZE = 1024 * 1024


def _raise(error: OSError):
    raise error


def relevant_files(source_root: Union[str, Path], exclude: Collection[str] = ()) -> List[str]:
    """List files contributing to the fingerprint.

    Paths are relative to source_root, use forward slashes and are sorted so
    the result does not depend on directory enumeration order.

    Args:
        source_root: Directory to walk
        exclude: Directory names that are not descended into

    Returns:
        Sorted list of relative paths
    """
    root = os.fspath(source_root)
    files = []

    # os.walk ignores listing errors unless onerror re-raises them
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        if exclude:
            dirnames[:] = [d for d in dirnames if d not in exclude]
        for name in filenames:
            if RELEVANT_FILES.match(name):
                relpath = os.path.relpath(os.path.join(dirpath, name), root)
                files.append(Path(relpath).as_posix())

    return sorted(files)


def _frame(tag: str, name: bytes) -> bytes:
    return b"<%s %d:%s" % (tag.encode('ascii'), len(name), name)


def compute_fingerprint(source_root: Union[str, Path], header: Optional[str] = None,
                        exclude: Collection[str] = ()) -> str:
    """Compute the SHA-256 fingerprint of a source tree.

    Each relevant file contributes ``<file N:REL size=S>``, its raw bytes and
    ``</file>``, in sorted order of relative path. N is the byte length of
    the path and S the byte length of the content, so no file content can
    pass for a file boundary. The optional header is hashed first and lets
    several build units share one tree without sharing an identity.

    Args:
        source_root: Existing directory holding the sources
        header: Extra identity prefix, e.g. the entry point being built
        exclude: Directory names skipped during the walk

    Returns:
        Lowercase hex digest, 64 characters

    Raises:
        BuildCacheError: The tree is missing or a file cannot be read
    """
    started = time.monotonic()
    root = Path(source_root)

    if not root.is_dir():
        raise BuildCacheError(f"Source tree not found: {root}")

    digest = hashlib.sha256()
    if header:
        digest.update(_frame("header", header.encode('utf-8', 'surrogateescape')) + b">")

    try:
        files = relevant_files(root, exclude)
        for relpath in files:
            # names that are not valid UTF-8 are hashed as their raw bytes
            name = os.fsencode(relpath)
            with open(root / relpath, 'rb') as f:
                size = os.fstat(f.fileno()).st_size
                digest.update(_frame("file", name) + b" size=%d>" % size)
                for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                    digest.update(chunk)
            digest.update(b"</file>")
    except OSError as e:
        raise BuildCacheError(f"Unable to fingerprint {root}: {e}") from e

    checksum = digest.hexdigest()
    elapsed = time.monotonic() - started
    label = header or root.name
    logger.info(f"==> checksum {checksum[:8]} | {label} ({len(files)} files, {elapsed:.3f}s)")
    return checksum
