class EntityNotFoundUpstream(LookupError):
    """The chain returned no usable data for a key; nothing was cached."""

    def __init__(self, kind: str, key, reason: str = ""):
        self.kind = kind
        self.key = str(key)
        message = f"{kind} {self.key} not found upstream"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DuplicateRecordError(Exception):
    """Insert hit a uniqueness constraint: another writer stored the key first."""

    def __init__(self, table: str, key):
        self.table = table
        self.key = str(key)
        super().__init__(f"{table} record {self.key} already exists")


class NotificationError(RuntimeError):
    """The messaging backend answered but refused the request."""
