import os
from collections.abc import Callable
from dataclasses import dataclass, fields


@dataclass(frozen=True)
class Theme:
    red: str = "\033[38;5;203m"
    green: str = "\033[38;5;114m"
    yellow: str = "\033[38;5;221m"
    blue: str = "\033[38;5;111m"
    gray: str = "\033[38;5;245m"
    muted: str = "\033[90m"  # dim gray for secondary text
    reset: str = "\033[0m"


PLAIN = Theme(**{f.name: "" for f in fields(Theme)})
DEFAULT = PLAIN if os.environ.get("NO_COLOR") else Theme()
_active: Theme = DEFAULT

_COLORS = {"red", "green", "yellow", "blue", "gray", "muted"}


def __getattr__(name: str) -> Callable[[str], str]:
    if name in _COLORS:

        def _wrap(text: str) -> str:
            return f"{getattr(_active, name)}{text}{_active.reset}"

        _wrap.__name__ = name
        return _wrap
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
