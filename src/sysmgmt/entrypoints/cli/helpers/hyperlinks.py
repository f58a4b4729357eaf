"""OSC-8 hyperlinks for terminals that support them."""

import os
import sys
from typing import TextIO

_OSC8_TERMINALS = frozenset({"apple_terminal", "vscode", "iterm.app", "wezterm", "kitty"})


def supports_osc8(stream: TextIO | None = None) -> bool:
    """Best-effort guess whether `stream` (default stdout) renders OSC-8 links.

    Piped or redirected streams never do.
    """
    stream = stream or sys.stdout
    if not getattr(stream, "isatty", lambda: False)():
        return False
    if (os.getenv("TERM_PROGRAM") or "").lower() in _OSC8_TERMINALS:
        return True
    if os.getenv("WT_SESSION") or os.getenv("VTE_VERSION"):
        return True
    return os.getenv("TERM", "").startswith(("alacritty", "konsole"))


def hyperlink(url: str, label: str | None = None) -> str:
    """Wrap `url` in OSC-8 escapes, or return the plain text when unsupported.

    Args:
        url: Link target.
        label: Visible text; defaults to `url`. Shown as-is on the fallback path.
    """
    text = label or url
    if not supports_osc8():
        return text
    return f"\x1b]8;;{url}\x07{text}\x1b]8;;\x07"
