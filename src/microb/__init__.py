"""microb - flat-file blog post store and admin tools."""

__version__ = "0.4.0"
