"""
Application exceptions.
"""


class DataAccessError(Exception):
    """The transaction, visibility or settings store could not be read or written."""
