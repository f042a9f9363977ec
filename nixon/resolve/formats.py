"""
Shaping directives: turn the raw output of a referenced command into
selector candidates. The candidate title is what the user sees, the value
is what ends up in the resolved command.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from ..select import Candidate
from ..types import Columns, Fields, Json, PlaceholderFormat

_COLUMN_SPLIT = re.compile(r"\t+| {2,}")


@dataclass(frozen=True)
class Shaped:
    candidates: List[Candidate]
    header: Optional[str] = None


def _pick(parts: Sequence[str], fields: Sequence[int]) -> str:
    # 1-based, out of range fields are dropped
    return " ".join(parts[f - 1] for f in fields if 0 < f <= len(parts))


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value, sort_keys=True)


def _json_candidates(output: str) -> List[Candidate]:
    data = json.loads(output)
    if isinstance(data, dict):
        return [Candidate(f"{k} - {_as_text(v)}", k) for k, v in data.items()]
    if isinstance(data, list):
        return [Candidate.identity(_as_text(item)) for item in data]
    return [Candidate.identity(_as_text(data))]


def shape(fmt: PlaceholderFormat, output: str) -> Shaped:
    """
    Candidates for `output` under `fmt`.

    Raises ValueError (json.JSONDecodeError) when a JSON format gets
    something that is not JSON.
    """
    if isinstance(fmt, Json):
        return Shaped(_json_candidates(output))

    lines = [ln for ln in output.splitlines() if ln.strip()]

    if isinstance(fmt, Fields):
        return Shaped([Candidate(ln, _pick(ln.split(), fmt.fields)) for ln in lines])

    if isinstance(fmt, Columns):
        header = None
        if fmt.has_header and lines:
            header, lines = lines[0], lines[1:]
        if not fmt.fields:
            return Shaped([Candidate.identity(ln) for ln in lines], header)
        return Shaped(
            [Candidate(ln, _pick(_COLUMN_SPLIT.split(ln.strip()), fmt.fields)) for ln in lines],
            header,
        )

    return Shaped([Candidate.identity(ln) for ln in lines])


__all__ = ["Shaped", "shape"]
