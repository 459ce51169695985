"""Shared fixtures for shagit tests."""

import pytest

from shagit import base, data


@pytest.fixture
def work_dir(tmp_path):
    """An initialized, empty working directory."""
    path = tmp_path / "work"
    path.mkdir()
    data.init(path)
    return path


@pytest.fixture
def git_dir(work_dir):
    return data.require_git_dir(work_dir)


@pytest.fixture
def outside_dir(tmp_path):
    """A directory with no repository above it."""
    path = tmp_path / "outside"
    path.mkdir()
    return path


@pytest.fixture
def first_commit(work_dir):
    (work_dir / "a.txt").write_text("hello")
    return base.commit(work_dir, "first")
