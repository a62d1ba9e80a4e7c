"""
External book catalog access (Google Books search proxy).
"""
