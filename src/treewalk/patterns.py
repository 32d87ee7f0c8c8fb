"""Include/exclude pattern filters evaluated against visit details.

String patterns use gitignore semantics (via ``pathspec``) and are matched
against the entry's path relative to the walk root; directories carry a
trailing slash so directory-only patterns apply. Callable specs are treated
as opaque predicates over the detail itself.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace

from pathspec import PathSpec

from treewalk.details import FallbackDetail, ResolvedDetail, UnauthorizedDetail, VisitDetail

type EntrySpec = Callable[[VisitDetail], bool]


def _as_patterns(patterns: str | Iterable[str]) -> tuple[str, ...]:
    """Return ``patterns`` as a tuple; a bare string is one pattern."""
    return (patterns,) if isinstance(patterns, str) else tuple(patterns)


def _compile(patterns: Iterable[str]) -> PathSpec:
    return PathSpec.from_lines("gitwildmatch", patterns)


def _match_string(detail: VisitDetail) -> str:
    match detail:
        case ResolvedDetail() | FallbackDetail():
            return detail.relative_path.match_string(is_dir=detail.is_directory)
        case UnauthorizedDetail():
            return detail.relative_path.match_string(is_dir=False)


@dataclass(frozen=True, slots=True)
class PatternSet:
    """One include/exclude clause.

    An entry satisfies the clause iff (there are no includes or at least one
    include matches) and no exclude matches.
    """

    includes: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()
    include_specs: tuple[EntrySpec, ...] = ()
    exclude_specs: tuple[EntrySpec, ...] = ()

    _include_spec: PathSpec = field(init=False, repr=False, compare=False)
    _exclude_spec: PathSpec = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Accept any iterable from callers but store tuples to stay hashable.
        for name in ("includes", "excludes"):
            object.__setattr__(self, name, _as_patterns(getattr(self, name)))
        for name in ("include_specs", "exclude_specs"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, "_include_spec", _compile(self.includes))
        object.__setattr__(self, "_exclude_spec", _compile(self.excludes))

    @property
    def is_empty(self) -> bool:
        return not (self.includes or self.excludes or self.include_specs or self.exclude_specs)

    def is_included(self, detail: VisitDetail) -> bool:
        if not self.includes and not self.include_specs:
            return True
        if self.includes and self._include_spec.match_file(_match_string(detail)):
            return True
        return any(spec(detail) for spec in self.include_specs)

    def is_excluded(self, detail: VisitDetail) -> bool:
        if self.excludes and self._exclude_spec.match_file(_match_string(detail)):
            return True
        return any(spec(detail) for spec in self.exclude_specs)

    def matches(self, detail: VisitDetail) -> bool:
        return self.is_included(detail) and not self.is_excluded(detail)


@dataclass(frozen=True, slots=True)
class PatternFilter:
    """Conjunction of :class:`PatternSet` clauses.

    Filters are immutable. :meth:`intersect` narrows by combining clauses;
    :meth:`including` and :meth:`excluding` return copies with extra
    patterns on the last clause.
    """

    clauses: tuple[PatternSet, ...] = ()
    prune_excluded_dirs: bool = False

    @classmethod
    def of(
        cls,
        includes: str | Iterable[str] = (),
        excludes: str | Iterable[str] = (),
        *,
        include_specs: Iterable[EntrySpec] = (),
        exclude_specs: Iterable[EntrySpec] = (),
        prune_excluded_dirs: bool = False,
    ) -> PatternFilter:
        clause = PatternSet(
            includes=_as_patterns(includes),
            excludes=_as_patterns(excludes),
            include_specs=tuple(include_specs),
            exclude_specs=tuple(exclude_specs),
        )
        clauses = () if clause.is_empty else (clause,)
        return cls(clauses=clauses, prune_excluded_dirs=prune_excluded_dirs)

    @property
    def includes(self) -> tuple[str, ...]:
        return tuple(p for c in self.clauses for p in c.includes)

    @property
    def excludes(self) -> tuple[str, ...]:
        return tuple(p for c in self.clauses for p in c.excludes)

    def intersect(self, other: PatternFilter) -> PatternFilter:
        """Return a filter matching only what both ``self`` and ``other`` match."""
        merged = list(self.clauses)
        merged.extend(c for c in other.clauses if c not in merged)
        return PatternFilter(
            clauses=tuple(merged),
            prune_excluded_dirs=self.prune_excluded_dirs or other.prune_excluded_dirs,
        )

    def including(self, *patterns: str) -> PatternFilter:
        return self._with_last(lambda c: replace(c, includes=c.includes + patterns))

    def excluding(self, *patterns: str) -> PatternFilter:
        return self._with_last(lambda c: replace(c, excludes=c.excludes + patterns))

    def _with_last(self, update: Callable[[PatternSet], PatternSet]) -> PatternFilter:
        last = self.clauses[-1] if self.clauses else PatternSet()
        head = self.clauses[:-1] if self.clauses else ()
        return replace(self, clauses=(*head, update(last)))

    def matches(self, detail: VisitDetail) -> bool:
        """Return True if the visitor should be notified about ``detail``."""
        return all(c.matches(detail) for c in self.clauses)

    def prunes(self, detail: VisitDetail) -> bool:
        """Return True if the directory ``detail`` should not be descended."""
        return self.prune_excluded_dirs and any(c.is_excluded(detail) for c in self.clauses)

    def __str__(self) -> str:
        return f"include {list(self.includes)} exclude {list(self.excludes)}"
