"""
Target languages for generated code.
"""

from __future__ import annotations

from .base import Declaration, DeclarationKind, ImportSpec, Target
from .golang import GoTarget
from .python import PythonTarget

TARGETS: dict[str, type[Target]] = {
    GoTarget.language: GoTarget,
    PythonTarget.language: PythonTarget,
}


def get_target(language: str) -> Target:
    """Create the target for the given language identifier.

    Raises:
        ValueError: If the language is not supported
    """
    try:
        return TARGETS[language]()
    except KeyError:
        raise ValueError(f"Unsupported language {language!r}, expected one of: {', '.join(sorted(TARGETS))}") from None


__all__ = [
    "Declaration",
    "DeclarationKind",
    "GoTarget",
    "ImportSpec",
    "PythonTarget",
    "Target",
    "TARGETS",
    "get_target",
]
