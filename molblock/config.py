"""
Parser configuration.

``ParserOptions`` holds the switches that control one parse call.
``load_options`` builds them from ``MOLBLOCK_*`` environment variables:

    MOLBLOCK_SANITIZE=true
    MOLBLOCK_REMOVE_HS=true
    MOLBLOCK_STRICT_COUNTS=false
    MOLBLOCK_SKIP_FAILED=true
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any

_TRUE_VALUES = ("true", "1", "yes")


@dataclass(frozen=True, slots=True)
class ParserOptions:
    """Options for Molfile and SDF parsing.

    Attributes:
        sanitize: Run post-processing (stereo perception, hydrogen removal
            or sanitization) on each parsed record.
        remove_hs: When sanitizing, remove hydrogens rather than only
            sanitizing. Removal sanitizes the result as well.
        strict_counts: Treat malformed legacy counts-line fields as errors.
        skip_failed_records: SDF only: yield None for a record that fails
            to parse instead of raising.
    """

    sanitize: bool = True
    remove_hs: bool = True
    strict_counts: bool = False
    skip_failed_records: bool = True

    def with_overrides(self, **overrides: Any) -> "ParserOptions":
        """Return a copy with the given fields replaced.

        Raises:
            TypeError: If an override names an unknown option.
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown parser option(s): {', '.join(sorted(unknown))}")
        return replace(self, **overrides)


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def load_options() -> ParserOptions:
    """Load parser options from environment variables."""
    defaults = ParserOptions()
    return ParserOptions(
        sanitize=_env_flag("MOLBLOCK_SANITIZE", defaults.sanitize),
        remove_hs=_env_flag("MOLBLOCK_REMOVE_HS", defaults.remove_hs),
        strict_counts=_env_flag("MOLBLOCK_STRICT_COUNTS", defaults.strict_counts),
        skip_failed_records=_env_flag("MOLBLOCK_SKIP_FAILED", defaults.skip_failed_records),
    )


def resolve_options(options: ParserOptions | None = None, **overrides: Any) -> ParserOptions:
    """Combine an options object (or the environment defaults) with keyword overrides."""
    base = options if options is not None else load_options()
    return base.with_overrides(**overrides) if overrides else base
