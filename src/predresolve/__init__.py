"""predresolve - resolve market names to slugs, index active markets, fetch market details."""

__version__ = "0.1.0"
