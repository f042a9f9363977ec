from __future__ import annotations

from typing import Iterable, List, Optional


def flag(key: str, value: Optional[bool]) -> Optional[List[str]]:
    return [key] if value else None


def arg(key: str, value: Optional[str]) -> Optional[List[str]]:
    return [key, value] if value is not None else None


def build_args(parts: Iterable[Optional[List[str]]]) -> List[str]:
    out: List[str] = []
    for p in parts:
        if p:
            out.extend(p)
    return out


def one_line(text: str) -> str:
    return text.replace("\r", " ").replace("\n", " ").replace("\t", " ")
