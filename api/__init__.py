"""
FastAPI RESTful API for the Library Management System.

This module provides a REST API for:
- Book catalogue management
- Borrowing copies and borrow summaries
- Health and storage status
"""
