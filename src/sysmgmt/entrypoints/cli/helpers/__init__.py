"""CLI helpers for SYSMGMT.

Display-safe database URLs, OSC-8 hyperlinks for API endpoints, logger-level
option parsing, and stderr message emitters with emoji->ASCII fallbacks.
"""

from .db_url import sanitize_url
from .hyperlinks import hyperlink
from .messages import error, success, warn

__all__ = ["error", "hyperlink", "sanitize_url", "success", "warn"]
