# 02.10.26

from .version import __title__, __version__

__all__ = [
    "__title__",
    "__version__",
]
