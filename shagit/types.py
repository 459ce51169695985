from typing import TypeAlias, NamedTuple, Literal

Path: TypeAlias = str  # a path in the filesystem
RefPath: TypeAlias = str  # a ref location relative to the git dir, e.g. refs/heads/main
OID: TypeAlias = str  # sha256 hex digest
TreeMap: TypeAlias = dict[Path, OID]
ObjectType: TypeAlias = Literal['blob', 'tree', 'commit']
EntryType: TypeAlias = Literal['blob', 'tree']

OBJECT_TYPES: tuple[ObjectType, ...] = ('blob', 'tree', 'commit')


class Commit(NamedTuple):
    tree: OID
    parent: OID | None
    message: str


class TreeEntry(NamedTuple):
    type_: EntryType
    oid: OID
    name: str


class RefValue(NamedTuple):
    symbolic: bool
    value: str | None
    location: RefPath = ''
