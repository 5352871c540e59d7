"""
ts_to_typespec
==============

Convert annotated TypeScript type declarations into TypeSpec models and
aliases so wire schemas can be derived from code instead of written twice.
"""

from importlib.metadata import PackageNotFoundError, version


def get_version() -> str:
    """Return the installed package version or '0.0.0' when unavailable."""
    try:
        return version("ts-to-typespec")
    except PackageNotFoundError:
        return "0.0.0"


__all__ = ["get_version"]
