"""ghostkb: voice recordings and Markdown note collections as one knowledge base."""

__version__ = "0.3.0"
