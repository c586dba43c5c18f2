"""
Strategy Engine Exceptions
Error taxonomy for the recommendation core. None of these come from I/O.
"""


class StrategyEngineError(Exception):
    """Base exception for all strategy engine errors"""

    def __init__(self, message: str, strategy: str | None = None):
        self.message = message
        self.strategy = strategy
        super().__init__(self.message)


class InvalidInput(StrategyEngineError):
    """Price, IV or DTE missing, zero or negative - the symbol cannot be analyzed"""

    pass


class NotFound(StrategyEngineError):
    """No quoted contract available on the requested chain side"""

    pass


class LegNotResolved(StrategyEngineError):
    """A required leg could not be priced from the chain (non-fatal)"""

    def __init__(self, message: str, strategy: str | None = None, role: str | None = None):
        self.role = role
        super().__init__(message, strategy)


class DegenerateRange(StrategyEngineError):
    """Zero or negative width, risk or profit - the candidate has no meaningful ROC"""

    pass
