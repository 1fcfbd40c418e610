"""flyola-offline: offline cache worker for the Flyola site."""

from flyola_offline.version import __version__

__all__ = ["__version__"]
