"""PageLens: upload markup documents and extract a structured summary."""

__version__ = "0.1.0"

__all__ = ["__version__"]
