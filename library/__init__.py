"""
Library package: book catalogue and borrow bookkeeping.

This package contains:
- Validated book and borrow models
- Typed error taxonomy
- MongoDB connection manager
- Book and borrow entity managers
"""

__version__ = "1.0.0"
