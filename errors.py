class ReportValidationError(ValueError):
    pass


class StorageError(RuntimeError):
    pass


class ExpenseNotFound(LookupError):
    pass

