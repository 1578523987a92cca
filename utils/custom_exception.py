class CustomException(Exception):
    """
    Custom exception class for the parts compatibility project.
    Wraps original exceptions with a context message.
    """

    def __init__(self, message: str, original_exception: Exception = None):
        super().__init__(message)
        self.original_exception = original_exception

    def __str__(self):
        if self.original_exception:
            return f"{self.args[0]} | Original exception: {repr(self.original_exception)}"
        return self.args[0]


class InvalidQueryError(CustomException):
    """Raised when a search is missing its part or model parameter."""


class CategoryNotFoundError(CustomException):
    """
    Raised when a part hint resolves to no known category.
    Carries the known categories so callers can suggest one.
    """

    def __init__(self, hint: str, available=None):
        super().__init__(f"Unknown part category: '{hint}'")
        self.hint = hint
        self.available = list(available or [])
