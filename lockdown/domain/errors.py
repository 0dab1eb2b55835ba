"""Error taxonomy shared by stores, the engine and the entry points."""


class StoreError(Exception):
    """Underlying persistence failure (connectivity, serialization, constraint)."""


class ValidationError(ValueError):
    """Operator-supplied input is malformed."""

    def __init__(self, message: str, value: str | None = None):
        super().__init__(message)
        self.value = value
