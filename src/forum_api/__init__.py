"""Forum API: accounts, posts, topics, nested comments and saves."""

__version__ = "0.1.0"
