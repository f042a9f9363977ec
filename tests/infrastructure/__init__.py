"""
Shared test infrastructure for nixon.

Modules:
- file_utils: writing catalogs and project trees
- stubs: in-process selector and evaluator replacements
"""

from .file_utils import make_project, write, write_catalog
from .stubs import RecordingEvaluator, StubSelector

__all__ = [
    "make_project",
    "write",
    "write_catalog",
    "RecordingEvaluator",
    "StubSelector",
]
