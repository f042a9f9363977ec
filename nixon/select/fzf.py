from __future__ import annotations

import logging
import subprocess
from typing import Iterable, List

from ..errors import NixonUserError
from . import Candidate, Selection, SelectorOptions
from ._args import arg, build_args, flag, one_line

logger = logging.getLogger(__name__)

# fzf exit codes
_NO_MATCH = 1
_INTERRUPTED = 130


def fzf_args(options: SelectorOptions) -> List[str]:
    """Command line for fzf. Input lines are `<index>\\t<title>`, only the title is shown."""
    case = None
    if options.ignore_case is True:
        case = ["-i"]
    elif options.ignore_case is False:
        case = ["+i"]
    return ["fzf", "--delimiter", "\t", "--with-nth", "2..", "--no-sort"] + build_args([
        flag("--exact", options.exact),
        case,
        flag("--multi", options.multiple),
        arg("--query", options.query),
        arg("--prompt", f"{options.prompt}> " if options.prompt else None),
        arg("--header", options.header),
    ])


def fzf(options: SelectorOptions, candidates: Iterable[Candidate]) -> Selection:
    items = list(candidates)
    feed = "".join(f"{i}\t{one_line(c.title)}\n" for i, c in enumerate(items))
    args = fzf_args(options)
    logger.debug("Running %s with %d candidate(s)", args, len(items))
    try:
        proc = subprocess.run(args, input=feed, stdout=subprocess.PIPE, text=True, encoding="utf-8")
    except FileNotFoundError:
        raise NixonUserError("fzf not found in PATH")

    if proc.returncode == _NO_MATCH:
        return Selection.empty()
    if proc.returncode == _INTERRUPTED:
        return Selection.cancelled()
    if proc.returncode != 0:
        raise NixonUserError(f"fzf failed with exit code {proc.returncode}")

    values = []
    for line in proc.stdout.splitlines():
        index, _, _ = line.partition("\t")
        if index.isdigit() and int(index) < len(items):
            values.append(items[int(index)].value)
    return Selection.default(values) if values else Selection.empty()


__all__ = ["fzf", "fzf_args"]
