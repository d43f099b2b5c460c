"""Comment-preserving editing of JSONCTC (JSON with comments and trailing commas)."""

from jsonctc.document import JSONCTCDocument, PathError
from jsonctc.tools.jsonpos import JsonPosError
from jsonctc.tracked import Diff, TrackedNode

__version__ = "0.1.0"

__all__ = [
    "JSONCTCDocument",
    "PathError",
    "JsonPosError",
    "TrackedNode",
    "Diff",
    "__version__",
]
