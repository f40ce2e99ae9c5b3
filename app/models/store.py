from enum import Enum


class WriteOutcomeEnum(str, Enum):
    FALLEN_BACK = "fallen_back"
    """Only the in-memory collection was updated."""
    PERSISTED = "persisted"
    """The external state store accepted the collection."""


class BackendUnavailableError(Exception):
    """
    The external state store could not be read or written.

    Internal to persistence, the store always recovers from it.
    """
