"""
Application errors surfaced to API callers
"""
from typing import List


class ValidationFailure(ValueError):
    """A request broke one or more rules; all of them are reported together."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


class NotFoundError(LookupError):
    """A referenced campus, dish, ingredient, recipe or generation does not exist."""

    def __init__(self, entity: str, key):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")
