import hashlib
import logging
import os
import string
from typing import Iterable

from shagit import config
from shagit import types
from shagit.errors import (
    CorruptObjectError,
    InvariantViolation,
    ObjectNotFoundError,
    RefCycleError,
    RepositoryAlreadyExistsError,
    RepositoryNotFoundError,
    TypeMismatchError,
)
from shagit.types import RefValue

logger = logging.getLogger(__name__)

HEAD = 'HEAD'
HEADS_PREFIX = 'refs/heads/'
TAGS_PREFIX = 'refs/tags/'
SYMBOLIC_MARKER = 'ref:'
OID_LENGTH = 64


def find_git_dir(start: types.Path) -> types.Path | None:
    path = os.path.abspath(start)
    while True:
        candidate = os.path.join(path, config.GIT_DIR_NAME)
        if os.path.isdir(candidate):
            return candidate
        parent = os.path.dirname(path)
        if parent == path:
            return None
        path = parent


def require_git_dir(start: types.Path) -> types.Path:
    git_dir = find_git_dir(start)
    if git_dir is None:
        raise RepositoryNotFoundError(start)
    return git_dir


def _check_git_dir(git_dir):
    if not os.path.isdir(git_dir):
        raise RepositoryNotFoundError(git_dir)


def init(work_dir: types.Path) -> types.Path:
    existing = find_git_dir(work_dir)
    if existing is not None:
        raise RepositoryAlreadyExistsError(existing)

    git_dir = os.path.join(os.path.abspath(work_dir), config.GIT_DIR_NAME)
    os.makedirs(os.path.join(git_dir, 'objects'))
    os.makedirs(os.path.join(git_dir, HEADS_PREFIX))
    os.makedirs(os.path.join(git_dir, TAGS_PREFIX))
    logger.info('Initialized empty repository in %s', git_dir)
    return git_dir


def is_oid(name: str) -> bool:
    return len(name) == OID_LENGTH and all(c in string.hexdigits.lower() for c in name)


def _object_path(git_dir, oid):
    return os.path.join(git_dir, 'objects', oid)


def _check_type(type_):
    if type_ not in types.OBJECT_TYPES:
        raise InvariantViolation(f'Unknown object type {type_!r}')


def hash_object(git_dir: types.Path, data: bytes, type_: types.ObjectType = 'blob') -> types.OID:
    _check_git_dir(git_dir)
    _check_type(type_)

    obj = type_.encode() + b'\x00' + data
    oid = hashlib.sha256(obj).hexdigest()
    path = _object_path(git_dir, oid)
    if os.path.isfile(path):
        logger.debug('Reusing stored %s %s', type_, oid)
        return oid

    with open(path, 'wb') as out:
        out.write(obj)
    logger.debug('Stored %s %s (%d bytes)', type_, oid, len(data))
    return oid


def _read_object(git_dir, oid) -> tuple[str, bytes]:
    _check_git_dir(git_dir)
    if not is_oid(oid):
        raise ObjectNotFoundError(oid)
    path = _object_path(git_dir, oid)
    if not os.path.isfile(path):
        raise ObjectNotFoundError(oid)

    with open(path, 'rb') as f:
        obj = f.read()

    type_, sep, content = obj.partition(b'\x00')
    if not sep:
        raise CorruptObjectError(f'Object {oid} has no type header')
    return type_.decode(errors='replace'), content


def get_object(git_dir: types.Path, oid: types.OID, expected: types.ObjectType | None = 'blob') -> bytes:
    type_, content = _read_object(git_dir, oid)
    if expected is not None and type_ != expected:
        raise TypeMismatchError(oid, expected, type_)
    return content


def object_exists(git_dir: types.Path, oid: str) -> bool:
    _check_git_dir(git_dir)
    return is_oid(oid) and os.path.isfile(_object_path(git_dir, oid))


def object_type(git_dir: types.Path, oid: types.OID) -> types.ObjectType:
    type_, _ = _read_object(git_dir, oid)
    match type_:
        case 'blob' | 'tree' | 'commit':
            return type_
        case _:
            raise CorruptObjectError(f'Object {oid} has unknown type {type_!r}')


def branch_ref(name: str) -> types.RefPath:
    return f'{HEADS_PREFIX}{name}'


def tag_ref(name: str) -> types.RefPath:
    return f'{TAGS_PREFIX}{name}'


def is_ref_location(location: str) -> bool:
    if location == HEAD:
        return True
    parts = location.split('/')
    return (location.startswith('refs/')
            and all(part and part not in ('.', '..') for part in parts))


def _ref_path(git_dir, location):
    if not is_ref_location(location):
        raise InvariantViolation(f'Invalid ref location {location!r}')
    return os.path.join(git_dir, *location.split('/'))


def update_ref(git_dir: types.Path, ref: RefValue, deref=True):
    _check_git_dir(git_dir)
    if not ref.value:
        raise InvariantViolation(f'Tried to update {ref.location} with an empty value')

    location = _get_ref_internal(git_dir, ref.location, deref)[0]
    if ref.symbolic:
        _check_symbolic_target(git_dir, location, ref.value)
        value = f'{SYMBOLIC_MARKER}{ref.value}'
    else:
        _check_commit_target(git_dir, location, ref.value)
        value = ref.value

    ref_path = _ref_path(git_dir, location)
    os.makedirs(os.path.dirname(ref_path), exist_ok=True)
    with open(ref_path, 'w') as f:
        f.write(value)
    logger.debug('Updated %s to %s', location, value)


def _check_symbolic_target(git_dir, location, target):
    if not is_ref_location(target):
        raise InvariantViolation(f'{location} may only point at another ref, not {target!r}')

    current = target
    for _ in range(config.MAX_REF_DEPTH):
        if current == location:
            raise InvariantViolation(f'Pointing {location} at {target} would create a ref cycle')
        step = get_ref(git_dir, current, deref=False)
        if not step.symbolic:
            return
        current = step.value
    raise InvariantViolation(f'Ref chain from {target} is longer than {config.MAX_REF_DEPTH} steps')


def _check_commit_target(git_dir, location, oid):
    if not object_exists(git_dir, oid):
        raise InvariantViolation(f'{location} may not point at missing object {oid!r}')
    type_ = object_type(git_dir, oid)
    if type_ != 'commit':
        raise InvariantViolation(f'{location} may only point at a commit, not a {type_} ({oid})')


def get_ref(git_dir: types.Path, ref: types.RefPath, deref=True) -> RefValue:
    return _get_ref_internal(git_dir, ref, deref)[1]


def _get_ref_internal(git_dir, ref, deref, chain=()) -> tuple[types.RefPath, RefValue]:
    if ref in chain or len(chain) >= config.MAX_REF_DEPTH:
        raise RefCycleError([*chain, ref])

    ref_path = _ref_path(git_dir, ref)
    value = None
    if os.path.isfile(ref_path):
        with open(ref_path) as f:
            value = f.read().strip()

    symbolic = bool(value) and value.startswith(SYMBOLIC_MARKER)
    if symbolic:
        value = value.split(':', 1)[1].strip()
        if deref:
            return _get_ref_internal(git_dir, value, deref=True, chain=(*chain, ref))
    return ref, RefValue(symbolic=symbolic, value=value or None, location=ref)


def set_head(git_dir: types.Path, oid: types.OID):
    update_ref(git_dir, RefValue(symbolic=False, value=oid, location=HEAD), deref=False)


def get_head(git_dir: types.Path) -> types.OID | None:
    return get_ref(git_dir, HEAD).value


def iter_refs(git_dir: types.Path, prefix='', deref=True) -> Iterable[tuple[types.RefPath, RefValue]]:
    _check_git_dir(git_dir)
    refs = [HEAD]
    for root, dirnames, filenames in os.walk(os.path.join(git_dir, 'refs')):
        dirnames.sort()
        root = os.path.relpath(root, git_dir).replace('\\', '/')
        refs.extend(f'{root}/{name}' for name in sorted(filenames))

    for refname in refs:
        if not refname.startswith(prefix):
            continue
        ref = get_ref(git_dir, refname, deref=deref)
        if ref.value:
            yield refname, ref
