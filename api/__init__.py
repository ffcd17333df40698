"""
FastAPI RESTful API for the Bookstore service.

This module provides a REST API for:
- User registration and login with bearer tokens
- Browsing, searching and paginating the book catalog
- Owner-scoped creation, update and deletion of books
"""
