"""Static file server that reloads connected browser tabs on file changes."""

__version__ = "0.3.0"
