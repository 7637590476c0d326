# raypool/core/exceptions.py

class PoolWatcherException(Exception):
    """Base class for custom exceptions in this application."""
    pass

class TransientNetworkFailure(PoolWatcherException):
    """RPC or websocket transport failed; the caller may retry."""
    pass

class ReconnectBudgetExhausted(PoolWatcherException):
    """The log subscription failed too many times in a row."""
    pass

class PoolExtractionError(PoolWatcherException):
    """A transaction could not be turned into pool keys."""
    pass

class MissingInstruction(PoolExtractionError):
    """No top-level pool initialization instruction in the transaction."""
    pass

class MissingInnerInstruction(PoolExtractionError):
    """A required side-effect instruction of the pool initialization is absent."""
    pass

class MissingBalanceSnapshot(PoolExtractionError):
    """No pre-transaction token balance for a mint we need decimals for."""
    pass

class UnsupportedInstructionShape(PoolExtractionError):
    """The initialization instruction's account list does not match the known layout."""
    pass

class TransactionDecodeError(PoolExtractionError):
    """The RPC transaction payload is malformed."""
    pass

class TransactionNotFound(PoolExtractionError):
    """The node returned no transaction for the signature."""
    pass

class AccountNotFound(PoolWatcherException):
    """The node returned no account data for an address."""
    pass

class MarketDecodeError(PoolWatcherException):
    """Market account bytes do not fit the expected layout."""
    pass
