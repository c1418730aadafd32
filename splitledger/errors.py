"""
Ledger error hierarchy.

Every service raises one of these synchronously to its caller. The HTTP
layer maps ``status_code`` onto the response; nothing here retries.
"""


class LedgerError(Exception):
    """Base error for all ledger operations."""

    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidArgument(LedgerError):
    """Missing ids, bad amounts, empty or self-referential party lists."""

    status_code = 400


class NotFound(LedgerError):
    """Account, request or transaction lookup miss."""

    status_code = 404

    def __init__(self, kind: str, id: str):
        self.kind = kind
        self.id = id
        super().__init__(f"{kind} '{id}' not found", {"kind": kind, "id": id})


class AlreadyExists(LedgerError):
    """An account already exists for this pair of parties."""

    status_code = 409

    def __init__(self, owner_id: str, related_id: str):
        self.owner_id = owner_id
        self.related_id = related_id
        super().__init__(
            f"Account already exists for '{owner_id}' and '{related_id}'",
            {"owner_id": owner_id, "related_id": related_id},
        )


class UnknownCurrency(LedgerError):
    """Conversion with a code missing from the rate table."""

    status_code = 400

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Unknown currency '{code}'", {"code": code})


class NoOp(LedgerError):
    """The requested mutation would not change anything."""

    status_code = 409


class Internal(LedgerError):
    """Persistence failure or a malformed stored record."""

    status_code = 500
