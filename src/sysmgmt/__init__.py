"""SYSMGMT

A system management service that monitors external APIs: it probes each
registered endpoint, classifies its health, keeps a short-lived cache of
unhealthy APIs and records the history of every check.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
