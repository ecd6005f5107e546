"""External API clients for book metadata.

Submodules:
    google_books -- Google Books volume search (default metadata lookup)
"""
