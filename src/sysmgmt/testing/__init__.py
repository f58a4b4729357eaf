"""Test support for SYSMGMT.

`UnitTestBase` is the base class for unit tests of components that take their
collaborators and `Settings` explicitly. Importing this package requires
``pytest`` (install the ``test`` extra).
"""

from .base import DuplicateMockError, UnitTestBase

__all__ = ["DuplicateMockError", "UnitTestBase"]
