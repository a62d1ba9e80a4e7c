"""
FastAPI RESTful API for the Book Tracker.

This module provides a REST API for:
- Registration, login, logout and "who am I"
- A personal list of saved books
- Google Books search proxy
"""
