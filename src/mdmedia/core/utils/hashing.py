"""SHA-1 content hashing for content-addressed asset names"""

import hashlib
from pathlib import Path


def sha1_bytes(data: bytes) -> str:
    """Return hex-encoded SHA-1 of data (40 chars)."""
    return hashlib.sha1(data).hexdigest()


def sha1_file(path: Path) -> str:
    """Return hex-encoded SHA-1 of a file's full contents."""
    return sha1_bytes(Path(path).read_bytes())
