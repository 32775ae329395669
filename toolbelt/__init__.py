"""Building blocks for command-line build tools and a Go project builder."""

__version__ = "0.1.0"