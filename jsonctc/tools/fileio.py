"""Read JSONCTC files into documents; write text atomically.

``write_text`` takes a string or anything whose ``str()`` is the file content
(a :class:`~jsonctc.document.JSONCTCDocument` serializes itself that way). The
content goes to a temporary file next to the target which is then renamed over
it, so readers never observe a half-written file.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from jsonctc.document import JSONCTCDocument
from jsonctc.tools.jsonpos import JsonPosError

logger = logging.getLogger(__name__)

PathArg = Union[str, "os.PathLike[str]"]


@dataclass
class DocumentReadError(Exception):
    kind: str  # fileNotFound | accessDenied | readError | parseError
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.message}: {self.path}"


@dataclass
class DocumentWriteError(Exception):
    kind: str  # accessDenied | writeError
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.message}: {self.path}"


def read_text(path: PathArg) -> str:
    p = Path(path)
    try:
        return p.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise DocumentReadError("fileNotFound", str(p), "File not found") from e
    except PermissionError as e:
        raise DocumentReadError("accessDenied", str(p), "Cannot read") from e
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentReadError("readError", str(p), f"Failed to read file ({e})") from e


def read_document(path: PathArg) -> JSONCTCDocument:
    text = read_text(path)
    try:
        return JSONCTCDocument(text)
    except JsonPosError as e:
        raise DocumentReadError("parseError", str(path), f"Failed to parse JSONCTC ({e})") from e


def write_text(path: PathArg, content: Any) -> Path:
    """Atomically replace ``path`` with ``content``; returns the path written."""
    p = Path(path)
    data = content if isinstance(content, str) else str(content)

    try:
        p.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        raise DocumentWriteError("accessDenied", str(p.parent), "Cannot create directory") from e
    except OSError as e:
        raise DocumentWriteError("writeError", str(p.parent), f"Failed to create directory ({e})") from e

    tmp = None
    try:
        fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=str(p.parent))
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(data)
        if p.exists():
            os.chmod(tmp, p.stat().st_mode & 0o777)
        else:
            os.chmod(tmp, 0o644)
        os.replace(tmp, p)
    except Exception as e:
        if tmp is not None:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
        if isinstance(e, PermissionError):
            raise DocumentWriteError("accessDenied", str(p), "Cannot write") from e
        raise DocumentWriteError("writeError", str(p), f"Failed to write ({e})") from e

    logger.debug("wrote %d characters to %s", len(data), p)
    return p
