import logging
import os
from typing import Iterator

from typing_extensions import assert_never

from . import config, data
from . import types
from .errors import (
    AmbiguousReferenceError,
    CorruptObjectError,
    InvalidRefNameError,
    MissingTreeFieldError,
    ReferenceNotFoundError,
    UnsupportedEntryKindError,
)
from .types import RefValue

logger = logging.getLogger(__name__)

HEAD_ALIASES = ('HEAD', '@')


def hash_file(work_dir: types.Path, path: types.Path) -> types.OID:
    git_dir = data.require_git_dir(work_dir)
    with open(os.path.join(work_dir, path), 'rb') as f:
        return data.hash_object(git_dir, f.read())


def write_tree(work_dir: types.Path, ignored=None) -> types.OID:
    """Snapshot ``work_dir`` into the object store and return the root tree OID.

    Entries are visited in name order, so the same directory contents always
    produce the same tree. Names in ``ignored`` are skipped at every depth.
    """
    git_dir = data.require_git_dir(work_dir)
    if ignored is None:
        ignored = config.ignored_names()
    oid = _write_tree_recursive(git_dir, work_dir, ignored)
    logger.debug('Wrote tree %s for %s', oid, work_dir)
    return oid


def _write_tree_recursive(git_dir, directory, ignored) -> types.OID:
    with os.scandir(directory) as it:
        dir_entries = sorted(it, key=lambda e: e.name)

    entries = []
    for entry in dir_entries:
        if entry.name in ignored:
            continue
        if '\n' in entry.name:
            raise UnsupportedEntryKindError(f'name with a line break {entry.path!r}')
        try:
            entry.name.encode()
        except UnicodeEncodeError:
            raise UnsupportedEntryKindError(f'name that is not valid UTF-8 {entry.path!r}') from None
        type_ = _entry_type(entry)
        entries.append(types.TreeEntry(type_, _entry_oid(git_dir, type_, entry.path, ignored), entry.name))

    tree = '\n'.join(f'{type_} {oid} {name}' for type_, oid, name in entries)
    return data.hash_object(git_dir, tree.encode(), 'tree')


def _entry_type(entry: os.DirEntry) -> types.EntryType:
    if entry.is_file(follow_symlinks=False):
        return 'blob'
    if entry.is_dir(follow_symlinks=False):
        return 'tree'
    raise UnsupportedEntryKindError(entry.path)


def _entry_oid(git_dir, type_: types.EntryType, path, ignored) -> types.OID:
    match type_:
        case 'blob':
            with open(path, 'rb') as f:
                return data.hash_object(git_dir, f.read())
        case 'tree':
            return _write_tree_recursive(git_dir, path, ignored)
        case _:
            assert_never(type_)


def _iter_tree_entries(git_dir, oid) -> Iterator[types.TreeEntry]:
    tree = data.get_object(git_dir, oid, 'tree')
    for line in tree.decode().split('\n'):
        if not line:
            continue
        parts = line.split(' ', 2)
        if len(parts) != 3:
            raise CorruptObjectError(f'Tree {oid} has a malformed entry {line!r}')
        type_, oid_, name = parts
        if '/' in name or name in ('.', '..'):
            raise CorruptObjectError(f'Tree {oid} has an invalid entry name {name!r}')
        yield types.TreeEntry(type_, oid_, name)


def get_tree(git_dir: types.Path, oid: types.OID, base_path: types.Path = '') -> types.TreeMap:
    result = {}
    for type_, oid_, name in _iter_tree_entries(git_dir, oid):
        path = base_path + name
        if type_ == 'blob':
            result[path] = oid_
        elif type_ == 'tree':
            result.update(get_tree(git_dir, oid_, f'{path}/'))
        else:
            raise UnsupportedEntryKindError(f'tree entry of type {type_!r} at {path}')
    return result


def read_tree(tree_oid: types.OID, target_dir: types.Path, ignored=None):
    """Replace the contents of ``target_dir`` with the snapshot ``tree_oid``.

    Everything in ``target_dir`` that is not ignored is deleted first. There is
    no backup: an interrupted restore leaves the directory partially written.
    """
    git_dir = data.require_git_dir(target_dir)
    if ignored is None:
        ignored = config.ignored_names()

    tree = get_tree(git_dir, tree_oid)
    _empty_directory(target_dir, ignored)
    for path, oid in tree.items():
        path = os.path.join(target_dir, *path.split('/'))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'wb') as f:
            f.write(data.get_object(git_dir, oid))
    logger.debug('Restored %d files from tree %s into %s', len(tree), tree_oid, target_dir)


def _empty_directory(directory, ignored):
    for root, dirnames, filenames in os.walk(directory, topdown=False):
        for filename in filenames:
            path = os.path.join(root, filename)
            if is_ignored(os.path.relpath(path, directory), ignored):
                continue
            os.remove(path)
        for dirname in dirnames:
            path = os.path.join(root, dirname)
            if is_ignored(os.path.relpath(path, directory), ignored):
                continue
            if os.path.islink(path):
                os.remove(path)
            elif not os.listdir(path):
                os.rmdir(path)
            else:
                logger.debug('Keeping %s, it still holds ignored entries', path)


def is_ignored(path: types.Path, ignored=None) -> bool:
    if ignored is None:
        ignored = config.ignored_names()
    parts = path.replace('\\', '/').split('/')
    return any(part in ignored for part in parts)


def commit(work_dir: types.Path, message: str) -> types.OID:
    git_dir = data.require_git_dir(work_dir)
    commit_ = f'tree {write_tree(work_dir)}\n'

    HEAD = data.get_head(git_dir)
    if HEAD:
        commit_ += f'parent {HEAD}\n'

    commit_ += '\n'
    commit_ += message

    oid = data.hash_object(git_dir, commit_.encode(), 'commit')
    data.update_ref(git_dir, RefValue(symbolic=False, value=oid, location=data.HEAD))
    logger.info('Committed %s', oid)
    return oid


def get_commit(git_dir: types.Path, oid: types.OID) -> types.Commit:
    tree = None
    parent = None
    commit_ = data.get_object(git_dir, oid, 'commit').decode()
    header, _, message = commit_.partition('\n\n')
    for line in header.splitlines():
        key, _, value = line.partition(' ')
        if key == 'tree':
            tree = value
        elif key == 'parent':
            if parent is not None:
                raise CorruptObjectError(f'Commit {oid} has more than one parent')
            parent = value
        else:
            raise CorruptObjectError(f'Commit {oid} has an unknown field {key!r}')

    if tree is None:
        raise MissingTreeFieldError(oid)
    return types.Commit(tree=tree, parent=parent, message=message)


def iter_commits(git_dir: types.Path, oid: types.OID | None) -> Iterator[tuple[types.OID, types.Commit]]:
    while oid:
        commit_ = get_commit(git_dir, oid)
        yield oid, commit_
        oid = commit_.parent


def checkout(work_dir: types.Path, name: str) -> types.OID:
    git_dir = data.require_git_dir(work_dir)
    oid = get_oid(git_dir, name)
    commit_ = get_commit(git_dir, oid)
    read_tree(commit_.tree, work_dir)
    data.set_head(git_dir, oid)
    logger.info('Checked out %s', oid)
    return oid


def create_tag(work_dir: types.Path, name: str, target: str = '@') -> types.OID:
    return _create_ref(work_dir, data.tag_ref(name), name, target)


def create_branch(work_dir: types.Path, name: str, target: str = '@') -> types.OID:
    return _create_ref(work_dir, data.branch_ref(name), name, target)


def _create_ref(work_dir, location, name, target):
    git_dir = data.require_git_dir(work_dir)
    if not data.is_ref_location(location):
        raise InvalidRefNameError(name)
    oid = get_oid(git_dir, target)
    data.update_ref(git_dir, RefValue(symbolic=False, value=oid, location=location))
    logger.info('Created %s at %s', location, oid)
    return oid


def _ref_oid(git_dir, location):
    if not data.is_ref_location(location):
        return None
    return data.get_ref(git_dir, location).value


def locate(git_dir: types.Path, name: str) -> types.OID | None:
    """Resolve ``name`` to an OID, or return None if nothing matches.

    ``name`` is checked as a tag, a branch, a stored object id and, for
    ``HEAD`` and ``@`` only, the HEAD ref. A name that matches more than one
    of these raises :class:`AmbiguousReferenceError`.
    """
    found = {}
    if oid := _ref_oid(git_dir, data.tag_ref(name)):
        found['tag'] = oid
    if oid := _ref_oid(git_dir, data.branch_ref(name)):
        found['branch'] = oid
    if data.object_exists(git_dir, name):
        found['object'] = name
    if name in HEAD_ALIASES and (oid := data.get_head(git_dir)):
        found['HEAD'] = oid

    if len(found) > 1:
        raise AmbiguousReferenceError(name, found)
    return next(iter(found.values()), None)


def get_oid(git_dir: types.Path, name: str) -> types.OID:
    oid = locate(git_dir, name)
    if oid is None:
        raise ReferenceNotFoundError(name)
    return oid
