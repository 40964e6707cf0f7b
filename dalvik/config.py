"""Configuration for the basic block lifter."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    elif value in _FALSY:
        return False
    raise ValueError(f"{name} must be one of {_TRUTHY + _FALSY}, got {raw!r}")


@dataclass(frozen=True)
class LiftConfig:
    """Lifter options.

    ``split_blocks`` splits an existing block when a branch lands inside it.
    With it off, the inner target is decoded again as a separate block that
    overlaps the first one.
    """

    ENV_SPLIT_BLOCKS = "DALVIK_SPLIT_BLOCKS"

    split_blocks: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LiftConfig":
        """Build a config from ``DALVIK_SPLIT_BLOCKS``; unset or empty means default."""
        env = os.environ if environ is None else environ
        raw = env.get(cls.ENV_SPLIT_BLOCKS, "")
        if not raw.strip():
            return cls()
        return cls(split_blocks=_parse_bool(cls.ENV_SPLIT_BLOCKS, raw))
