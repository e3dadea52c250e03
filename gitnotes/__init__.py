"""gitnotes - wiki-link graph engine for markdown note collections."""

__version__ = "0.1.0"
