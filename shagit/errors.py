"""Exceptions raised by shagit.

Everything deriving from :class:`ShagitError` is an expected failure that the
CLI reports as a message. :class:`InvariantViolation` marks a broken calling
contract and is deliberately not a ``ShagitError``.
"""


class ShagitError(Exception):
    """Base class for recoverable shagit errors."""


class RepositoryNotFoundError(ShagitError):
    def __init__(self, start):
        super().__init__(f'Not a shagit repository (or any parent up to /): {start}')
        self.start = start


class RepositoryAlreadyExistsError(ShagitError):
    def __init__(self, git_dir):
        super().__init__(f'A shagit repository already exists at {git_dir}')
        self.git_dir = git_dir


class ObjectNotFoundError(ShagitError):
    def __init__(self, oid):
        super().__init__(f'Object {oid} does not exist')
        self.oid = oid


class TypeMismatchError(ShagitError):
    def __init__(self, oid, expected, actual):
        super().__init__(f'Object {oid} was expected to be a {expected}, but is a {actual}')
        self.oid = oid
        self.expected = expected
        self.actual = actual


class AmbiguousReferenceError(ShagitError):
    def __init__(self, name, kinds):
        super().__init__(f"Ref '{name}' is ambiguous: matches {', '.join(kinds)}")
        self.name = name
        self.kinds = tuple(kinds)


class ReferenceNotFoundError(ShagitError):
    def __init__(self, name):
        super().__init__(f'Unknown name {name}')
        self.name = name


class InvalidRefNameError(ShagitError):
    def __init__(self, name):
        super().__init__(f'{name!r} is not a valid ref name')
        self.name = name


class UnsupportedEntryKindError(ShagitError):
    def __init__(self, what):
        super().__init__(f'Expected only files and directories, found {what}')
        self.what = what


class RefCycleError(ShagitError):
    def __init__(self, chain):
        super().__init__(f"Symbolic ref chain does not terminate: {' -> '.join(chain)}")
        self.chain = tuple(chain)


class CorruptObjectError(ShagitError):
    """A stored object does not decode as its type says it should."""


class MissingTreeFieldError(CorruptObjectError):
    def __init__(self, oid):
        super().__init__(f'Commit {oid} has no tree field')
        self.oid = oid


class InvariantViolation(AssertionError):
    """A caller broke a contract of the storage layer."""
