"""
Error hierarchy.

NixonUserError and its subclasses are problems the user can fix (a broken
catalog, an unknown placeholder reference, an aborted selection). The CLI
prints their message and exits non-zero. Anything else is a bug and keeps
its traceback.
"""

from __future__ import annotations


class NixonUserError(Exception):
    """Base class for errors reported to the user without a traceback."""
    pass


class CatalogParseError(NixonUserError):
    """Structural error in a Markdown command catalog."""
    pass


class PlaceholderSyntaxError(CatalogParseError):
    """Malformed placeholder or placeholder modifier."""

    def __init__(self, message: str, position: int):
        self.message = message
        self.position = position
        super().__init__(f"{message} at position {position}")


class ConfigError(NixonUserError):
    """Invalid global configuration payload."""
    pass


class ResolutionError(NixonUserError):
    """Placeholder resolution failed; the command is not run."""
    pass


class InvalidArgumentError(ResolutionError):
    """Placeholder refers to a command that does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"invalid argument: `{name}`")


class CyclicPlaceholderError(ResolutionError):
    """Placeholder chain refers back to a command already being resolved."""

    def __init__(self, chain: tuple[str, ...]):
        self.chain = chain
        super().__init__("cyclic placeholder reference: " + " -> ".join(f"`{n}`" for n in chain))


class EmptySelectionError(ResolutionError):
    """The selector returned nothing."""
    pass


class SelectionCancelledError(ResolutionError):
    """The user aborted the selector."""
    pass


class InvalidOutputError(ResolutionError):
    """Output of a referenced command does not match the placeholder format."""
    pass


class CommandFailedError(NixonUserError):
    """A command exited with a non-zero status while its output was needed."""

    def __init__(self, name: str, returncode: int, stderr: str = ""):
        self.name = name
        self.returncode = returncode
        self.stderr = stderr
        msg = f"command `{name}` failed with exit code {returncode}"
        if stderr.strip():
            msg += f": {stderr.strip()}"
        super().__init__(msg)


__all__ = [
    "NixonUserError",
    "CatalogParseError",
    "PlaceholderSyntaxError",
    "ConfigError",
    "ResolutionError",
    "InvalidArgumentError",
    "CyclicPlaceholderError",
    "EmptySelectionError",
    "SelectionCancelledError",
    "InvalidOutputError",
    "CommandFailedError",
]
