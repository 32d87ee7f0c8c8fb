from __future__ import annotations

from pathlib import Path

import pytest

from treewalk.attributes import FileAttributes
from treewalk.constants import FileKind
from treewalk.details import FallbackDetail, ResolvedDetail, StopSignal, UnauthorizedDetail
from treewalk.patterns import PatternFilter, PatternSet
from treewalk.relative_path import RelativePath

pytestmark = pytest.mark.small


def _file(rel: str) -> ResolvedDetail:
    return ResolvedDetail(
        Path("/r") / rel,
        RelativePath.parse(True, rel),
        FileAttributes(kind=FileKind.FILE, size=1, mtime=0.0),
        StopSignal(),
    )


def _dir(rel: str) -> ResolvedDetail:
    return ResolvedDetail(
        Path("/r") / rel,
        RelativePath.parse(False, rel),
        FileAttributes(kind=FileKind.DIRECTORY, size=0, mtime=0.0),
        StopSignal(),
    )


def test_empty_filter_matches_everything() -> None:
    f = PatternFilter()
    assert f.matches(_file("a.txt"))
    assert f.matches(_dir("sub"))
    assert PatternFilter.of().clauses == ()


def test_include_patterns_use_gitignore_semantics() -> None:
    f = PatternFilter.of(includes=["*.txt"])
    assert f.matches(_file("a.txt"))
    assert f.matches(_file("sub/deeper/b.txt"))
    assert not f.matches(_file("a.py"))
    assert not f.matches(_dir("sub"))


def test_exclude_wins_over_include() -> None:
    f = PatternFilter.of(includes=["**"], excludes=["*.log"])
    assert f.matches(_file("a.txt"))
    assert not f.matches(_file("x/debug.log"))


def test_directory_only_patterns_match_directories() -> None:
    f = PatternFilter.of(excludes=["build/"])
    assert not f.matches(_dir("build"))
    assert f.matches(_file("build"))


def test_negated_excludes_reinclude() -> None:
    f = PatternFilter.of(excludes=["*.txt", "!keep.txt"])
    assert not f.matches(_file("a.txt"))
    assert f.matches(_file("keep.txt"))


def test_callable_specs_are_opaque_predicates() -> None:
    big = PatternFilter.of(include_specs=[lambda d: d.name.startswith("big")])
    no_dirs = PatternFilter.of(exclude_specs=[lambda d: d.is_directory])

    assert big.matches(_file("big.bin"))
    assert not big.matches(_file("small.bin"))
    assert no_dirs.matches(_file("a"))
    assert not no_dirs.matches(_dir("a"))


def test_unauthorized_and_fallback_details_are_matched_by_path() -> None:
    f = PatternFilter.of(includes=["secret*"])
    unreadable = UnauthorizedDetail(Path("/r/secret"), RelativePath.leaf("secret"), StopSignal())
    fallback = FallbackDetail(Path("/r/secrets"), RelativePath.parse(False, "secrets"), FileKind.DIRECTORY, StopSignal())
    assert f.matches(unreadable)
    assert f.matches(fallback)


def test_intersect_narrows_and_is_order_independent() -> None:
    txt = PatternFilter.of(includes=["*.txt"])
    not_tmp = PatternFilter.of(excludes=["tmp/"])
    both = txt.intersect(not_tmp)
    other_way = not_tmp.intersect(txt)

    for detail in (_file("a.txt"), _file("tmp/a.txt"), _file("a.py"), _dir("tmp")):
        assert both.matches(detail) == other_way.matches(detail)
        assert both.matches(detail) == (txt.matches(detail) and not_tmp.matches(detail))
    assert not both.matches(_file("tmp/a.txt"))


def test_intersect_leaves_operands_untouched() -> None:
    txt = PatternFilter.of(includes=["*.txt"])
    before = txt.clauses
    txt.intersect(PatternFilter.of(excludes=["x"]))
    assert txt.clauses == before


def test_including_and_excluding_return_modified_copies() -> None:
    base = PatternFilter.of(includes=["*.txt"])
    wider = base.including("*.md")
    narrower = base.excluding("draft*")

    assert base.includes == ("*.txt",)
    assert wider.includes == ("*.txt", "*.md")
    assert narrower.excludes == ("draft*",)
    assert wider.matches(_file("a.md"))
    assert not base.matches(_file("a.md"))
    assert not narrower.matches(_file("draft.txt"))
    assert PatternFilter().excluding("x").excludes == ("x",)


def test_prunes_only_when_enabled() -> None:
    keep = PatternFilter.of(excludes=["build/"])
    prune = PatternFilter.of(excludes=["build/"], prune_excluded_dirs=True)

    assert not keep.prunes(_dir("build"))
    assert prune.prunes(_dir("build"))
    assert not prune.prunes(_dir("src"))


def test_pattern_set_accepts_lists() -> None:
    ps = PatternSet(includes=["a"], excludes=["b"])  # type: ignore[arg-type]
    assert ps.includes == ("a",)
    assert ps.excludes == ("b",)
    assert hash(ps) == hash(PatternSet(includes=("a",), excludes=("b",)))


def test_a_bare_string_is_a_single_pattern() -> None:
    f = PatternFilter.of(includes="*.txt", excludes="skip.txt")

    assert f.includes == ("*.txt",)
    assert f.excludes == ("skip.txt",)
    assert f.matches(_file("a.txt"))
    assert not f.matches(_file("skip.txt"))
    assert not f.matches(_file("t"))
    assert PatternSet(includes="abc").includes == ("abc",)  # type: ignore[arg-type]


def test_str_lists_patterns() -> None:
    assert str(PatternFilter.of(["*.txt"], ["x/"])) == "include ['*.txt'] exclude ['x/']"
