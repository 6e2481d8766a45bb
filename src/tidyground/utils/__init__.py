"""Generic utilities and helpers.

Helpers that are used by the other parts of the codebase
and are not bound to any specific component,
like printing tables or describing functions.
"""

from . import inspect, tabulate

__all__ = ("inspect", "tabulate")
