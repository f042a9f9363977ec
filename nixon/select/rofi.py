from __future__ import annotations

import logging
import subprocess
from typing import Iterable, List

from ..errors import NixonUserError
from . import Candidate, Selection, SelectorOptions
from ._args import arg, build_args, flag, one_line

logger = logging.getLogger(__name__)

_CANCELLED = 1


def rofi_args(options: SelectorOptions) -> List[str]:
    """Command line for `rofi -dmenu`; rofi prints the selected indexes."""
    matching = None
    if options.exact is True:
        matching = ["-matching", "normal"]
    elif options.exact is False:
        matching = ["-matching", "fuzzy"]
    return ["rofi", "-dmenu", "-format", "i"] + build_args([
        flag("-i", options.ignore_case),
        matching,
        flag("-multi-select", options.multiple),
        arg("-filter", options.query),
        arg("-p", options.prompt),
        arg("-mesg", options.header),
    ])


def rofi(options: SelectorOptions, candidates: Iterable[Candidate]) -> Selection:
    items = list(candidates)
    feed = "".join(f"{one_line(c.title)}\n" for c in items)
    args = rofi_args(options)
    logger.debug("Running %s with %d candidate(s)", args, len(items))
    try:
        proc = subprocess.run(args, input=feed, stdout=subprocess.PIPE, text=True, encoding="utf-8")
    except FileNotFoundError:
        raise NixonUserError("rofi not found in PATH")

    if proc.returncode == _CANCELLED:
        return Selection.cancelled()
    if proc.returncode != 0:
        raise NixonUserError(f"rofi failed with exit code {proc.returncode}")

    values = [
        items[int(ln)].value
        for ln in proc.stdout.split()
        if ln.isdigit() and int(ln) < len(items)
    ]
    return Selection.default(values) if values else Selection.empty()


__all__ = ["rofi", "rofi_args"]
