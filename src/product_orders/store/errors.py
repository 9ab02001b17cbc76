"""Storage-level exceptions shared by repository implementations."""


class DuplicateRecordError(Exception):
    """A write violated a uniqueness constraint (e.g. a concurrent add)."""
