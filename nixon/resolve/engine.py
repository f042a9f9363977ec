"""
Placeholder resolution.

Resolving a command walks its placeholders in order. Each placeholder names
another command of the catalog: that command is resolved first (same
protocol, recursively), evaluated, its output shaped into candidates and
handed to the selector. The chosen values are then aggregated by kind:

    <{name}     lines appended to standard input
    ${name}     each line becomes one positional argument
    VAR={name}  lines joined by spaces into environment variable VAR

Any empty or cancelled selection aborts the whole resolution.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Set, Tuple

from ..catalog.model import CommandIndex
from ..errors import (
    CyclicPlaceholderError,
    EmptySelectionError,
    InvalidArgumentError,
    InvalidOutputError,
    SelectionCancelledError,
)
from ..select import SelectionKind, Selector, SelectorOptions
from ..types import Command, Placeholder, PlaceholderKind, ResolvedEnv
from .formats import shape

logger = logging.getLogger(__name__)

# Runs a command with its resolved inputs and returns its standard output
Evaluator = Callable[[Command, ResolvedEnv], str]


@dataclass(frozen=True)
class ResolveContext:
    """Read-only inputs of one resolution: the catalog and the two capabilities."""
    commands: CommandIndex
    selector: Selector
    evaluate: Evaluator
    options: SelectorOptions = field(default_factory=SelectorOptions)


def _check_references(
    command: Command,
    ctx: ResolveContext,
    chain: Tuple[str, ...],
    checked: Optional[Set[str]] = None,
) -> None:
    """Every command reachable through placeholders exists and none points back into `chain`."""
    checked = set() if checked is None else checked
    for ph in command.placeholders:
        ref = ctx.commands.get(ph.name)
        if ref is None:
            raise InvalidArgumentError(ph.name)
        if ph.name in chain:
            raise CyclicPlaceholderError(chain + (ph.name,))
        if ph.name in checked:
            continue
        _check_references(ref, ctx, chain + (ph.name,), checked)
        checked.add(ph.name)


def resolve_placeholder(ph: Placeholder, ctx: ResolveContext, chain: Tuple[str, ...] = ()) -> List[str]:
    """Values selected for one placeholder."""
    ref = ctx.commands.get(ph.name)
    if ref is None:
        raise InvalidArgumentError(ph.name)

    ref_env = resolve(ref, ctx, chain)
    logger.debug("Evaluating `%s` for placeholder of %s", ref.name, chain[-1] if chain else "<top>")
    output = ctx.evaluate(ref, ref_env)

    try:
        shaped = shape(ph.format, output)
    except json.JSONDecodeError as e:
        raise InvalidOutputError(f"`{ph.name}` did not produce valid JSON: {e}") from e

    if ph.as_list:
        return [c.value for c in shaped.candidates]

    opts = replace(
        ctx.options,
        multiple=ph.multiple,
        query=ph.filter,
        prompt=ph.name,
        header=shaped.header,
    )
    selection = ctx.selector(opts, shaped.candidates)
    if selection.kind is SelectionKind.EMPTY:
        raise EmptySelectionError(f"nothing selected for `{ph.name}`")
    if selection.kind is SelectionKind.CANCELLED:
        raise SelectionCancelledError(f"selection cancelled for `{ph.name}`")
    return list(selection.values)


def resolve(command: Command, ctx: ResolveContext, chain: Tuple[str, ...] = ()) -> ResolvedEnv:
    """
    Resolve every placeholder of `command`.

    `chain` holds the names of the commands currently being resolved, outermost
    first; a placeholder pointing back into it is a cycle.
    """
    outermost = not chain
    chain = chain + (command.name,)
    if outermost:
        # the whole reference graph is validated before anything is evaluated
        _check_references(command, ctx, chain)

    stdin: List[str] = []
    args: List[str] = []
    env: Dict[str, str] = {}
    for ph in command.placeholders:
        values = resolve_placeholder(ph, ctx, chain)
        if ph.kind is PlaceholderKind.STDIN:
            stdin.extend(values)
        elif ph.kind is PlaceholderKind.ARG:
            args.extend(values)
        else:
            env[ph.env_name or ph.name] = " ".join(values)

    return ResolvedEnv(stdin=tuple(stdin), args=tuple(args), env=env)


__all__ = ["Evaluator", "ResolveContext", "resolve", "resolve_placeholder"]
