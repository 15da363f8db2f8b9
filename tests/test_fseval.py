import os
import stat

import pytest

from mtree.fseval import DefaultFsEval, FsEval


@pytest.fixture
def tree(tmp_path):
    (tmp_path / "tmpfile").write_bytes(b"some content here")
    (tmp_path / "testdir").mkdir()
    (tmp_path / "testdir" / "anotherfile").write_bytes(b"aaa")
    return tmp_path


def test_open_reads_content(tree):
    fs = DefaultFsEval()
    with fs.open(str(tree / "tmpfile")) as fh:
        assert fh.read() == b"some content here"


def test_open_missing_raises(tree):
    with pytest.raises(FileNotFoundError):
        DefaultFsEval().open(str(tree / "nope"))


def test_lstat_does_not_follow_symlink(tree):
    link = tree / "link"
    os.symlink("does-not-exist", link)
    info = DefaultFsEval().lstat(str(link))
    assert stat.S_ISLNK(info.st_mode) is True
    assert info.st_size == len("does-not-exist")


def test_lstat_regular_file_size(tree):
    info = DefaultFsEval().lstat(str(tree / "tmpfile"))
    assert stat.S_ISREG(info.st_mode)
    assert info.st_size == len(b"some content here")


def test_readdir_lists_entries(tree):
    listing = dict(DefaultFsEval().readdir(str(tree)))
    assert set(listing) == {"tmpfile", "testdir"}
    assert stat.S_ISDIR(listing["testdir"].st_mode)
    assert listing["tmpfile"].st_size == len(b"some content here")


def test_readdir_missing_raises(tree):
    with pytest.raises(FileNotFoundError):
        DefaultFsEval().readdir(str(tree / "missing"))


def test_keyword_func_returns_same_function():
    def fn(path, info, stream):
        return ["size=1"]

    fs = DefaultFsEval()
    assert fs.keyword_func(fn) is fn
    assert isinstance(fs, FsEval)