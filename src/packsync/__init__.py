"""packsync - versioned modpacks kept in sync with game instances."""

__version__ = "0.1.0"

from .cli import app  # noqa: E402
from .config import PacksyncConfig  # noqa: E402

__all__ = ["app", "PacksyncConfig", "__version__"]
