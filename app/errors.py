"""Domain errors surfaced to API callers."""


class ValidationError(Exception):
    """A record failed validation.

    `errors` maps a field name to its messages, e.g.
    ``{"email": ["has already been taken"]}``.
    """

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return "; ".join(
            f"{field.replace('_', ' ').capitalize()} {msg}"
            for field, messages in self.errors.items()
            for msg in messages
        )

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})

    def to_response(self) -> dict:
        """Convert to the JSON error body returned by the API."""
        return {"detail": self.message, "errors": self.errors}
