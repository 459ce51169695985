import os

import pytest

from shagit import base, data
from shagit.cli import main


def run(work_dir, *args):
    return main(["-C", str(work_dir), *args])


def test_init(tmp_path, capsys):
    assert run(tmp_path, "init") == 0
    assert "Initialized empty shagit repository" in capsys.readouterr().out
    assert (tmp_path / ".shagit" / "objects").is_dir()


def test_init_twice(work_dir, capsys):
    assert run(work_dir, "init") == 1
    assert "already exists" in capsys.readouterr().err


def test_outside_repository(outside_dir, capsys):
    assert run(outside_dir, "write-tree") == 1
    assert capsys.readouterr().err.startswith("shagit: Not a shagit repository")


def test_hash_object_and_cat_file(work_dir, capsysbinary):
    (work_dir / "a.txt").write_bytes(b"hello\x00bytes")
    assert run(work_dir, "hash-object", "a.txt") == 0
    oid = capsysbinary.readouterr().out.decode().strip()
    assert len(oid) == 64

    assert run(work_dir, "cat-file", oid) == 0
    assert capsysbinary.readouterr().out == b"hello\x00bytes"


def test_cat_file_type_mismatch(work_dir, git_dir, capsys):
    oid = data.hash_object(git_dir, b"hello")
    assert run(work_dir, "cat-file", "-t", "commit", oid) == 1
    assert "expected to be a commit" in capsys.readouterr().err


def test_write_tree_and_read_tree(work_dir, git_dir, capsys):
    (work_dir / "a.txt").write_text("hello")
    assert run(work_dir, "write-tree") == 0
    tree = capsys.readouterr().out.strip()
    assert tree == base.write_tree(work_dir)

    (work_dir / "a.txt").write_text("changed")
    assert run(work_dir, "read-tree", tree) == 0
    assert (work_dir / "a.txt").read_text() == "hello"
    assert f"Restored tree {tree}" in capsys.readouterr().out


def test_read_tree_accepts_commit_names(work_dir, git_dir, first_commit):
    base.create_tag(work_dir, "v1")
    (work_dir / "a.txt").write_text("changed")
    assert run(work_dir, "read-tree", "v1") == 0
    assert (work_dir / "a.txt").read_text() == "hello"


def test_commit_and_log(work_dir, capsys):
    (work_dir / "a.txt").write_text("one")
    assert run(work_dir, "commit", "-m", "first") == 0
    first = capsys.readouterr().out.strip()
    (work_dir / "a.txt").write_text("two")
    assert run(work_dir, "commit", "-m", "second\n\nwith body") == 0
    second = capsys.readouterr().out.strip()

    assert run(work_dir, "log") == 0
    out = capsys.readouterr().out
    assert out.index(f"commit {second}") < out.index(f"commit {first}")
    assert "    second\n\n    with body" in out
    assert "    first" in out


def test_checkout_and_tag(work_dir, git_dir, first_commit, capsys):
    assert run(work_dir, "tag", "v1") == 0
    (work_dir / "a.txt").write_text("two")
    assert run(work_dir, "commit", "-m", "second") == 0
    capsys.readouterr()

    assert run(work_dir, "checkout", "v1") == 0
    assert (work_dir / "a.txt").read_text() == "hello"
    assert data.get_head(git_dir) == first_commit


def test_branch(work_dir, git_dir, first_commit, capsys):
    assert run(work_dir, "branch", "feature") == 0
    assert "Branch feature created" in capsys.readouterr().out
    assert data.get_ref(git_dir, "refs/heads/feature").value == first_commit


@pytest.mark.parametrize("command", [["checkout", "nope"], ["log", "nope"], ["tag", "v1", "nope"]])
def test_unknown_names(work_dir, first_commit, capsys, command):
    assert run(work_dir, *command) == 1
    assert "Unknown name nope" in capsys.readouterr().err


def test_ambiguous_name(work_dir, first_commit, capsys):
    assert run(work_dir, "tag", "dup") == 0
    assert run(work_dir, "branch", "dup") == 0
    capsys.readouterr()
    assert run(work_dir, "checkout", "dup") == 1
    assert "ambiguous" in capsys.readouterr().err


def test_show_ref(work_dir, first_commit, capsys):
    assert run(work_dir, "tag", "v1") == 0
    assert run(work_dir, "branch", "main") == 0
    capsys.readouterr()

    assert run(work_dir, "show-ref") == 0
    assert capsys.readouterr().out.splitlines() == [
        f"{first_commit} HEAD",
        f"{first_commit} refs/heads/main",
        f"{first_commit} refs/tags/v1",
    ]

    assert run(work_dir, "show-ref", "refs/tags/") == 0
    assert capsys.readouterr().out == f"{first_commit} refs/tags/v1\n"


def test_non_utf8_name_reports_an_error(work_dir, capsys):
    with open(os.path.join(os.fsencode(work_dir), b"caf\xe9.txt"), "wb") as f:
        f.write(b"x")
    assert run(work_dir, "write-tree") == 1
    assert "not valid UTF-8" in capsys.readouterr().err
