class StorageError(Exception):
    """A storage write failed; `detail` carries the underlying driver message."""

    def __init__(self, message: str, detail: str = ""):
        super().__init__(message)
        self.message = message
        self.detail = detail


class DuplicateEmailError(StorageError):
    def __init__(self, email: str):
        super().__init__("Email already registered", f"duplicate email: {email}")
        self.email = email
