"""
Account and session handling for the book tracker.

This package contains:
- User and session models
- Password hashing
- MongoDB credential and session stores
- Token and server-side session strategies
- The Authenticator that ties them together
"""

__version__ = "1.0.0"
