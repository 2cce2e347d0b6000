"""
minivcs - a small local version-control engine

Tracks a working directory, stages files, records immutable commits linked
into branch histories, and can check out, merge or reset files from any
point in that history.
"""

__version__ = "0.1.0"

# Configuration is available at top level for convenience
from minivcs.config import config

__all__ = ["config", "__version__"]
