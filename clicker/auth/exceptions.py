"""Exceptions raised by the session store and the role registry."""


class SessionCreationFailed(RuntimeError):
    """Failed to create a session in the session store."""


class SessionDeletionFailed(RuntimeError):
    """Failed to delete a session in the session store."""


class SessionNotFound(RuntimeError):
    """The session is absent from the session store, or has expired."""


class SessionOwnershipError(RuntimeError):
    """The session belongs to a user other than the one acting on it."""


class SessionStoreError(RuntimeError):
    """The session store could not be read or updated."""


class InvalidToken(SessionStoreError):
    """A serialized session failed signature verification."""


class DuplicateRole(ValueError):
    """Two roles were registered under the same identifier."""
