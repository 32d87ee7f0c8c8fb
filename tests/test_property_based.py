from __future__ import annotations

import tempfile
from pathlib import Path, PurePosixPath

import pytest

try:  # import at module level; skip the whole module if unavailable
    from hypothesis import given
    from hypothesis import strategies as st
except ImportError:  # pragma: no cover - tooling availability
    pytest.skip("hypothesis not available", allow_module_level=True)

from tests.support import CallbackVisitor, FakeFileSystem, write_tree
from treewalk.attributes import UnreliableAttributes
from treewalk.config import apply_runtime_patterns
from treewalk.patterns import PatternFilter
from treewalk.tree import DirectoryTree
from treewalk.visitor import CollectingVisitor

ROOT = Path("/prop/root")
DIR_NAMES = st.sampled_from(["d1", "d2", "d3"])
FILE_NAMES = st.sampled_from(["f1.txt", "f2.py", "f3.txt"])
FILE_PATHS = st.builds(
    lambda dirs, name: "/".join([*dirs, name]),
    st.lists(DIR_NAMES, max_size=3),
    FILE_NAMES,
)
LAYOUTS = st.lists(FILE_PATHS, min_size=1, max_size=12, unique=True)
SEGMENT = st.text(
    min_size=1,
    max_size=5,
    alphabet=st.characters(min_codepoint=33, max_codepoint=126),
)


def _fake_tree(layout: list[str]) -> DirectoryTree:
    fs = FakeFileSystem()
    fs.add_dir(ROOT)
    for rel in layout:
        fs.add_file(ROOT / rel, rel.encode())
    return DirectoryTree(ROOT, file_system=fs, unreliable=UnreliableAttributes.never())


def _walk(tree: DirectoryTree, *, reproducible: bool = True) -> CollectingVisitor:
    visitor = CollectingVisitor(reproducible=reproducible)
    tree.visit(visitor)
    return visitor


@given(LAYOUTS)
def test_every_file_is_reported_exactly_once(layout: list[str]) -> None:
    visitor = _walk(_fake_tree(layout))

    files = [r.path for r in visitor.records if r.event == "file"]
    assert sorted(files) == sorted(layout)


@given(LAYOUTS, st.booleans())
def test_directories_bracket_their_contents(layout: list[str], postfix: bool) -> None:  # noqa: FBT001
    tree = _fake_tree(layout)
    paths = _walk(tree.postfix() if postfix else tree).paths()
    index = {p: i for i, p in enumerate(paths)}

    for p in paths:
        for parent in PurePosixPath(p).parents:
            if str(parent) == ".":
                continue
            if postfix:
                assert index[str(parent)] > index[p]
            else:
                assert index[str(parent)] < index[p]


@given(LAYOUTS)
def test_files_are_reported_before_sibling_directories(layout: list[str]) -> None:
    visitor = _walk(_fake_tree(layout))
    seen_dir_in: set[str] = set()

    for record in visitor.records:
        parent = str(PurePosixPath(record.path).parent)
        if record.event == "file":
            # no sibling directory may have been entered yet
            assert parent not in seen_dir_in
        else:
            seen_dir_in.add(parent)


@given(LAYOUTS, st.sampled_from(["*.txt", "*.py", "d1/", "d2/**/f1.txt"]))
def test_filtering_only_removes_entries(layout: list[str], pattern: str) -> None:
    tree = _fake_tree(layout)
    everything = _walk(tree).paths()
    included = _walk(tree.filter(includes=[pattern])).paths()
    excluded = _walk(tree.filter(excludes=[pattern])).paths()

    assert set(included) <= set(everything)
    assert set(excluded) <= set(everything)
    assert not set(included) & set(excluded)
    # relative order is preserved
    assert included == [p for p in everything if p in set(included)]


@given(LAYOUTS)
def test_native_order_visits_the_same_entries(layout: list[str]) -> None:
    tree = _fake_tree(layout)

    first = _walk(tree).paths()
    second = _walk(tree).paths()
    native = _walk(tree, reproducible=False).paths()

    assert first == second
    assert sorted(native) == sorted(first)


@given(LAYOUTS, st.integers(min_value=1, max_value=20))
def test_stopping_after_n_callbacks(layout: list[str], limit: int) -> None:
    tree = _fake_tree(layout)
    total = len(_walk(tree).records)

    def stop_at_limit(_event: str, detail) -> None:
        if len(visitor.seen) >= limit:
            detail.stop_visiting()

    visitor = CallbackVisitor(stop_at_limit)
    tree.visit(visitor)

    assert len(visitor.seen) == min(limit, total)


@given(st.lists(FILE_PATHS, min_size=1, max_size=6, unique=True))
def test_real_file_system_matches_fake(layout: list[str]) -> None:
    with tempfile.TemporaryDirectory() as d:
        root = write_tree(Path(d) / "root", {rel: rel for rel in layout})
        real = _walk(DirectoryTree(root, unreliable=UnreliableAttributes.never())).paths()

    assert real == _walk(_fake_tree(layout)).paths()


@given(
    base=st.lists(SEGMENT, max_size=5),
    add=st.lists(SEGMENT, max_size=3),
    remove=st.lists(SEGMENT, max_size=3),
)
def test_apply_runtime_patterns_matches_manual_logic(base: list[str], add: list[str], remove: list[str]) -> None:
    cfg = {"exclude": base.copy()}
    result = apply_runtime_patterns(cfg, add_exclude=tuple(add), remove_exclude=tuple(remove))

    expected = base.copy()
    for pattern in add:
        if pattern not in expected:
            expected.append(pattern)
    for pattern in remove:
        if pattern in expected:
            expected.remove(pattern)
    assert result["exclude"] == expected


def test_pattern_filter_of_nothing_matches_everything() -> None:
    tree = _fake_tree(["a/f1.txt"])

    assert tree.patterns == PatternFilter()
    assert _walk(tree).paths() == ["a", "a/f1.txt"]
