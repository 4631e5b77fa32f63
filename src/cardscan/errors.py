"""Exceptions raised by cardscan."""


class InvalidImageError(ValueError):
    """The caller supplied no image or one that cannot be decoded."""


class ResponseParseError(ValueError):
    """A model reply could not be turned into a field set."""


class CollaboratorError(RuntimeError):
    """A vision, text-completion or OCR collaborator is unavailable."""
