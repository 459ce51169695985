import logging
import os

GIT_DIR_NAME = '.shagit'

# Names skipped at every depth when snapshotting or emptying a directory
DEFAULT_IGNORED = (GIT_DIR_NAME, 'target')

MAX_REF_DEPTH = 32

IGNORE_ENV = 'SHAGIT_IGNORE'
LOG_LEVEL_ENV = 'SHAGIT_LOG_LEVEL'


def ignored_names() -> frozenset[str]:
    extra = os.environ.get(IGNORE_ENV, '')
    names = {name.strip() for name in extra.split(',') if name.strip()}
    return frozenset(DEFAULT_IGNORED) | names


def log_level(verbose=False) -> int:
    if verbose:
        return logging.DEBUG
    name = os.environ.get(LOG_LEVEL_ENV, '').upper()
    level = logging.getLevelName(name) if name else logging.WARNING
    if not isinstance(level, int):
        return logging.WARNING
    return level
