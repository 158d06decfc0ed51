"""Exceptions raised by the relational store."""


class NoSuchUser(RuntimeError):
    """A user was requested that does not exist."""


class NoSuchProfile(RuntimeError):
    """A profile was requested that does not exist."""


class ProgramNotFound(RuntimeError):
    """No published build matches the requested type, os, arch and branch."""
