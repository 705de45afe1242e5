"""
Custom exceptions for the live-match engine

All business errors live here so the API layer can map them in one place.
"""


class LiveMatchException(Exception):
    """Base class of every live-match error"""
    pass


# ============ Match lookup ============

class MatchNotFound(LiveMatchException):
    """The match does not exist"""
    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found")


# ============ Legality ============

class InvalidTransition(LiveMatchException):
    """The action is not allowed in the current phase"""
    def __init__(self, phase, action):
        self.phase = phase
        self.action = action
        super().__init__(f"Cannot {action} while match is {phase.value}")


class InvalidArgument(LiveMatchException):
    """Malformed input, rejected before any log mutation"""
    pass


# ============ Storage ============

class StorageFailure(LiveMatchException):
    """The event log store could not append or remove"""
    pass


class PersistenceFailure(LiveMatchException):
    """
    The remote mirror call failed after the in-memory mutation succeeded.

    The in-memory result is kept on `result` so the caller still sees the
    new state; the remote copy may be stale.
    """
    def __init__(self, message, result=None):
        self.result = result
        super().__init__(message)
