"""
Error types.

The core only guards a handful of inputs (speed, emergency level, negative route
fields). Everything it rejects is raised as `InvalidArgumentError`; callers (API/CLI)
map it to a 400-style response. Subclassing `ValueError` keeps `except ValueError`
handlers working unchanged.
"""

from __future__ import annotations


class InvalidArgumentError(ValueError):
    """Raised when a caller passes an out-of-contract value to a core function."""
