import io
import json

import pytest

from mtree.compare import (
    DifferenceType,
    InodeDelta,
    KeyDelta,
    compare,
    compare_entry,
    compare_same,
)
from mtree.entry import Entry
from mtree.keywords import Keyword
from mtree.parse import parse_spec

BASE = """\
/set type=file
. type=dir
    a size=1 mode=0644
    sub type=dir
        inner size=3
    ..
    b size=2
..
"""


def spec(text):
    return parse_spec(io.StringIO(text))


def by_path(deltas):
    return {d.path: d for d in deltas}


def test_identical_hierarchies_have_no_diffs():
    assert compare(spec(BASE), spec(BASE), None) == []


def test_modified_size():
    new = BASE.replace("a size=1", "a size=5")
    diffs = compare(spec(BASE), spec(new), None)
    assert len(diffs) == 1
    delta = diffs[0]
    assert delta.type == DifferenceType.MODIFIED
    assert delta.path == "a"
    assert delta.old() is not None and delta.new() is not None
    assert len(delta.keys) == 1
    key = delta.keys[0]
    assert key.name == "size"
    assert key.old() == "1"
    assert key.new() == "5"
    assert str(delta) == '"a": keyword "size": expected 1; got 5'


def test_missing_nested_path():
    new = BASE.replace("        inner size=3\n", "")
    diffs = by_path(compare(spec(BASE), spec(new), None))
    assert set(diffs) == {"sub/inner"}
    delta = diffs["sub/inner"]
    assert delta.type == DifferenceType.MISSING
    assert delta.keys is None
    assert delta.old().name == "inner"
    assert delta.new() is None
    assert str(delta) == '"sub/inner": missing path'


def test_extra_path():
    new = BASE.replace("    b size=2\n", "    b size=2\n    c size=9\n")
    diffs = compare(spec(BASE), spec(new), None)
    assert [d.path for d in diffs] == ["c"]
    delta = diffs[0]
    assert delta.type == DifferenceType.EXTRA
    assert delta.old() is None
    assert delta.new().name == "c"
    assert str(delta) == '"c": unexpected path'


def test_keys_filter_ignores_other_keywords():
    new = BASE.replace("a size=1", "a size=5")
    assert compare(spec(BASE), spec(new), [Keyword("mode")]) == []
    assert len(compare(spec(BASE), spec(new), ["size"])) == 1


def test_none_hierarchy_is_empty():
    dh = spec(BASE)
    missing = compare(dh, None, None)
    extra = compare(None, dh, None)
    paths = {".", "a", "sub", "sub/inner", "b"}
    assert {d.path for d in missing} == paths
    assert all(d.type == DifferenceType.MISSING for d in missing)
    assert {d.path for d in extra} == paths
    assert all(d.type == DifferenceType.EXTRA for d in extra)


def test_compare_same_reports_unchanged():
    new = BASE.replace("b size=2", "b size=7")
    diffs = by_path(compare_same(spec(BASE), spec(new), None))
    assert diffs["b"].type == DifferenceType.MODIFIED
    assert diffs["a"].type == DifferenceType.SAME
    assert diffs["a"].keys == []
    assert diffs["a"].old() is None
    with pytest.raises(ValueError):
        str(diffs["a"])


def test_time_and_tar_time_are_reconciled():
    old = Entry(name="f", keywords=["type=file", "time=5.987654321"])
    new = Entry(name="f", keywords=["type=file", "tar_time=5.000000000"])
    assert compare_entry(old, new) == []
    newer = Entry(name="f", keywords=["type=file", "tar_time=6.000000000"])
    result = compare_entry(old, newer)
    assert [(k.name, k.type) for k in result] == [("tar_time", DifferenceType.MODIFIED)]
    assert result[0].old() == "5.000000000"


def test_tar_time_new_side_from_time():
    old = Entry(name="f", keywords=["tar_time=5.000000000"])
    new = Entry(name="f", keywords=["time=5.123456789"])
    assert compare_entry(old, new) == []


def test_time_and_tar_time_in_same_manifest_is_error():
    old = Entry(name="f", keywords=["time=5.0", "tar_time=5.000000000"])
    new = Entry(name="f", keywords=["time=5.0", "tar_time=5.000000000"])
    with pytest.raises(ValueError, match="same manifest"):
        compare_entry(old, new)


def test_bad_time_value_is_error():
    old = Entry(name="f", keywords=["time=bogus"])
    new = Entry(name="f", keywords=["tar_time=5.000000000"])
    with pytest.raises(ValueError, match="failed to parse old time"):
        compare_entry(old, new)


def test_compare_wraps_entry_errors():
    old = spec(". type=dir time=bogus\n")
    new = spec(". type=dir tar_time=5.000000000\n")
    with pytest.raises(ValueError, match="comparison failed"):
        compare(old, new, None)


def test_xattr_missing_key():
    old = Entry(name="f", keywords=["size=1", "xattr.user.a=eA=="])
    new = Entry(name="f", keywords=["size=1"])
    result = compare_entry(old, new)
    assert len(result) == 1
    key = result[0]
    assert key.type == DifferenceType.MISSING
    assert key.name == "xattr.user.a"
    assert key.old() == "eA=="
    assert key.new() is None


def test_keys_only_on_one_side_are_ignored():
    old = Entry(name="f", keywords=["size=1", "mode=0644"])
    new = Entry(name="f", keywords=["size=1", "uid=0"])
    assert compare_entry(old, new) == []


def test_set_keywords_are_merged():
    old = spec("/set type=file mode=0644\n. type=dir\n    a size=1\n..\n")
    new = spec("/set type=file mode=0600\n. type=dir\n    a size=1\n..\n")
    diffs = by_path(compare(old, new, None))
    assert set(diffs) == {"a"}
    assert [k.name for k in diffs["a"].keys] == ["mode"]


def test_to_dict_json():
    new = BASE.replace("a size=1", "a size=5")
    delta = compare(spec(BASE), spec(new), None)[0]
    data = json.loads(json.dumps(delta.to_dict()))
    assert data == {
        "type": "modified",
        "path": "a",
        "keys": [{"type": "modified", "name": "size", "old": "1", "new": "5"}],
    }
    missing = InodeDelta(DifferenceType.MISSING, "x")
    assert missing.to_dict() == {"type": "missing", "path": "x", "keys": None}


def test_key_delta_accessors_by_type():
    extra = KeyDelta(DifferenceType.EXTRA, Keyword("size"), new_value="4")
    assert extra.old() is None
    assert extra.new() == "4"
    assert extra.to_dict()["old"] == ""
    assert str(DifferenceType.ERRORED) == "errored"