"""
Error base — every user-facing failure derives from FamiliarError.

The CLI catches FamiliarError, prints its message and exits 1.
Anything else (notably RegistryInvariantError) is a programming or
packaging fault and is left to crash the process.
"""

from __future__ import annotations


class FamiliarError(Exception):
    """Base class for errors that can be shown to the user as-is."""
