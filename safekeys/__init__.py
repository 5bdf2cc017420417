"""SafeKeys — Password vault crypto core and record management."""
from .version import __version__

__all__ = ["__version__"]
