"""AMP page linter: run distribution checks against a fetched document."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("amplint")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0-dev"

__all__ = ["__version__"]
