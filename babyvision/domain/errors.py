from typing import Iterable


class FrameDimensionError(ValueError):
    """Raised when a frame or session is sized with a non-positive dimension."""


class UnknownAgeError(KeyError):
    """Raised when an age stage has no preset."""

    def __init__(self, age: object, known: Iterable[int] = ()) -> None:
        super().__init__(age)
        self.age = age
        self.known = tuple(known)

    def __str__(self) -> str:
        return f"No preset for age stage {self.age!r} (known: {list(self.known)})"


class ConfigurationError(ValueError):
    """Raised when a session setting is outside its valid range."""
