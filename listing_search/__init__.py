"""Search and ranking engine for marketplace service listings."""

__version__ = "0.1.0"
