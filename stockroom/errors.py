# stockroom/errors.py


class StockroomError(Exception):
    """Base class for every failure the ledger reports to its caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(StockroomError):
    pass


class InvalidInput(StockroomError):
    pass


class PersistenceFailure(StockroomError):
    pass
