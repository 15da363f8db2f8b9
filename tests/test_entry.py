import pytest

from mtree.entry import Entry, EntryType, clean_path
from mtree.keywords import KeyVal


def test_clean_path_empty_stays_empty():
    assert clean_path("") == ""


def test_clean_path_cannot_escape_root():
    assert clean_path("../../a/b") == "a/b"


def test_clean_path_absolute_stays_under_root():
    assert clean_path("/../../x") == clean_path("/x")
    assert clean_path("/../../x").startswith("/")


@pytest.mark.parametrize(
    "path", ["a/../../b", "../..", "./a//b/", "x/./y/../z", "/a/b/../..", "."]
)
def test_clean_path_invariants(path):
    cleaned = clean_path(path)
    assert not cleaned.startswith("..")
    assert clean_path(cleaned) == cleaned


def test_path_joins_parent():
    parent = Entry(name="dir", type=EntryType.RELATIVE, keywords=["type=dir"])
    child = Entry(name="file", type=EntryType.RELATIVE, parent=parent)
    assert child.path() == "dir/file"


def test_full_type_ignores_parent():
    parent = Entry(name="dir", keywords=["type=dir"])
    child = Entry(name="a/b", type=EntryType.FULL, parent=parent)
    assert child.path() == "a/b"


def test_path_decodes_escapes():
    plain = Entry(name="file[ ")
    encoded = Entry(name="file\\133\\040")
    assert encoded.path() == plain.path()


def test_path_rejects_bad_escape():
    with pytest.raises(ValueError):
        Entry(name="bad\\").path()


def test_descend_finds_child_and_self():
    root = Entry(name=".", keywords=["type=dir"])
    a = Entry(name="a", parent=root)
    root.children.append(a)
    assert root.descend("a") is a
    assert root.descend(".") is root
    assert root.descend("missing") is None


def test_descend_prefers_last_child():
    root = Entry(name=".")
    first = Entry(name="x", pos=1)
    second = Entry(name="x", pos=2)
    root.children.extend([first, second])
    assert root.descend("x") is second


def test_ascend_returns_parent():
    root = Entry(name=".")
    child = Entry(name="c", parent=root)
    assert child.ascend() is root
    assert root.ascend() is None


def test_all_keys_entry_wins_over_set():
    set_entry = Entry(name="/set", type=EntryType.SPECIAL, keywords=["type=file", "uid=0"])
    entry = Entry(name="f", keywords=["uid=1000"], set=set_entry)
    keys = entry.all_keys()
    assert "uid=1000" in keys
    assert "uid=0" not in keys
    assert "type=file" in keys
    assert all(isinstance(kv, KeyVal) for kv in keys)


def test_is_dir_uses_set_keywords():
    set_entry = Entry(name="/set", type=EntryType.SPECIAL, keywords=["type=dir"])
    assert Entry(name="d", set=set_entry).is_dir() is True
    assert Entry(name="f", keywords=["type=file"]).is_dir() is False
    assert Entry(name="n").is_dir() is False


def test_str_formats():
    assert str(Entry(name="f", keywords=["size=1"])) == "    f size=1"
    assert str(Entry(name="d", keywords=["type=dir"])) == "d type=dir"
    assert str(Entry(name="/set", type=EntryType.SPECIAL, keywords=["uid=0"])) == "/set uid=0"
    assert str(Entry(type=EntryType.BLANK)) == ""
    assert str(Entry(name="..", type=EntryType.DOTDOT)) == ".."
    assert str(Entry(raw="# comment", type=EntryType.COMMENT)) == "# comment"


def test_entry_type_names():
    dotdot = Entry(name="..", type=EntryType.DOTDOT)
    signature = Entry(raw="#mtree v2.0", type=EntryType.SIGNATURE)
    assert str(dotdot.type) == "DotDotType"
    assert str(signature.type) == "SignatureType"