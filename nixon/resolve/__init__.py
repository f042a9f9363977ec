from __future__ import annotations

from .engine import Evaluator, ResolveContext, resolve, resolve_placeholder
from .formats import Shaped, shape

__all__ = ["Evaluator", "ResolveContext", "resolve", "resolve_placeholder", "Shaped", "shape"]
