"""Multi-file schema merging.

Reconciles the independently discovered column lists of several files into
one target schema. Disagreements between files are returned as Conflict
records on the merged schema; only an empty input raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..entities.schema import (
    TYPE_PRECEDENCE,
    ColumnDescriptor,
    ColumnType,
    Conflict,
    ConflictKind,
    ConflictResolution,
    FileColumn,
    MergedSchema,
    Mismatch,
    MismatchKind,
    ResolutionPolicy,
    Severity,
)
from .mapping.utils import merge_key

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..entities.schema import FileSchema

_FORMAT_SEPARATORS_RE = re.compile(r"[\s_\-.]+")


class SchemaMergeError(Exception):
    """Raised when there is nothing to merge."""


def _empty_occurrences() -> list[FileColumn]:
    return []


@dataclass(slots=True)
class _ColumnGroup:
    key: str
    name: str
    occurrences: list[FileColumn] = field(default_factory=_empty_occurrences)

    @property
    def spellings(self) -> list[str]:
        seen: list[str] = []
        for occurrence in self.occurrences:
            if occurrence.column_name not in seen:
                seen.append(occurrence.column_name)
        return seen

    @property
    def types(self) -> list[ColumnType]:
        seen: list[ColumnType] = []
        for occurrence in self.occurrences:
            if occurrence.type not in seen:
                seen.append(occurrence.type)
        return seen


def column_key(name: str) -> str:
    """Key under which spellings of one logical column are merged."""
    return name.strip().casefold()


def resolve_type(types: Sequence[ColumnType]) -> ColumnType:
    for candidate in TYPE_PRECEDENCE:
        if candidate in types:
            return candidate
    return ColumnType.TEXT


def classify_spellings(spellings: Sequence[str]) -> ConflictKind:
    """Classify how the spellings of one logical column disagree."""
    if len({s.strip().casefold() for s in spellings}) == 1:
        return ConflictKind.CASE_DIFFERENCE
    stripped = {_FORMAT_SEPARATORS_RE.sub("", s.casefold()) for s in spellings}
    if len(stripped) == 1:
        return ConflictKind.FORMAT_DIFFERENCE
    return ConflictKind.NAME_DIFFERENCE


class SchemaMerger:
    """Merge discovered file schemas under a resolution policy.

    Policies:
        union: case-insensitive union of every file's columns, sorted by
            merge key, types resolved by precedence.
        first_file: the first file's columns verbatim; later-only columns
            are reported as ``missing_in_first`` and excluded.
        manual: the union computation with every conflict marked
            ``manual_resolution_required``.
        strict: the union computation; callers abort on any live-table
            mismatch.
    """

    def __init__(self, policy: ResolutionPolicy = ResolutionPolicy.UNION) -> None:
        self.policy = policy

    def merge(self, files: Sequence[FileSchema]) -> MergedSchema:
        """Merge ``files`` into one schema.

        Raises:
            SchemaMergeError: If ``files`` is empty.
        """
        if not files:
            raise SchemaMergeError("No parsed files to merge")
        if self.policy is ResolutionPolicy.FIRST_FILE:
            merged = self._merge_first_file(files)
        else:
            merged = self._merge_union(files)
        if self.policy is ResolutionPolicy.MANUAL:
            for conflict in merged.conflicts:
                conflict.resolution = ConflictResolution.MANUAL_REQUIRED
        return merged

    def _group(self, files: Sequence[FileSchema]) -> dict[str, _ColumnGroup]:
        groups: dict[str, _ColumnGroup] = {}
        for file in files:
            for column in file.columns:
                key = column_key(column.name)
                group = groups.get(key)
                if group is None:
                    group = groups[key] = _ColumnGroup(key=key, name=column.name)
                group.occurrences.append(
                    FileColumn(
                        file_name=file.file_name,
                        column_name=column.name,
                        type=column.type,
                    )
                )
        return groups

    def _merge_union(self, files: Sequence[FileSchema]) -> MergedSchema:
        groups = self._group(files)
        columns: list[ColumnDescriptor] = []
        conflicts: list[Conflict] = []
        for key in sorted(groups):
            group = groups[key]
            columns.append(
                ColumnDescriptor(name=group.name, type=resolve_type(group.types))
            )
            spellings = group.spellings
            if len(spellings) > 1:
                conflicts.append(
                    Conflict(
                        column=group.name,
                        kind=classify_spellings(spellings),
                        files=list(group.occurrences),
                        resolution=ConflictResolution.USE_FIRST_OCCURRENCE,
                    )
                )
            if len(group.types) > 1:
                conflicts.append(
                    Conflict(
                        column=group.name,
                        kind=ConflictKind.TYPE_DIFFERENCE,
                        files=list(group.occurrences),
                        resolution=ConflictResolution.WIDEST_TYPE,
                    )
                )
        conflicts.extend(self._near_duplicates(groups))
        return MergedSchema(
            columns=columns,
            policy=self.policy,
            source_files=list(files),
            conflicts=conflicts,
            total_rows=sum(file.row_count for file in files),
        )

    @staticmethod
    def _near_duplicates(groups: dict[str, _ColumnGroup]) -> list[Conflict]:
        # Distinct columns whose names agree once punctuation is ignored are
        # kept apart and reported.
        by_alnum: dict[str, list[_ColumnGroup]] = {}
        for key in sorted(groups):
            alnum = merge_key(key)
            if alnum:
                by_alnum.setdefault(alnum, []).append(groups[key])
        conflicts: list[Conflict] = []
        for similar in by_alnum.values():
            if len(similar) < 2:
                continue
            conflicts.append(
                Conflict(
                    column=similar[0].name,
                    kind=classify_spellings([group.name for group in similar]),
                    files=[o for group in similar for o in group.occurrences],
                    resolution=ConflictResolution.KEEP_SEPARATE,
                )
            )
        return conflicts

    def _merge_first_file(self, files: Sequence[FileSchema]) -> MergedSchema:
        first = files[0]
        columns: list[ColumnDescriptor] = []
        kept: set[str] = set()
        for column in first.columns:
            key = column_key(column.name)
            if key in kept:
                continue
            kept.add(key)
            columns.append(
                ColumnDescriptor(name=column.name, type=column.type)
            )

        excluded: dict[str, Conflict] = {}
        for file in files[1:]:
            for column in file.columns:
                key = column_key(column.name)
                if key in kept:
                    continue
                occurrence = FileColumn(
                    file_name=file.file_name,
                    column_name=column.name,
                    type=column.type,
                )
                conflict = excluded.get(key)
                if conflict is None:
                    excluded[key] = Conflict(
                        column=column.name,
                        kind=ConflictKind.MISSING_IN_FIRST,
                        files=[occurrence],
                        resolution=ConflictResolution.EXCLUDE_COLUMN,
                    )
                else:
                    conflict.files.append(occurrence)

        return MergedSchema(
            columns=columns,
            policy=self.policy,
            source_files=list(files),
            conflicts=list(excluded.values()),
            total_rows=sum(file.row_count for file in files),
        )


def validate_against_table(
    columns: Sequence[ColumnDescriptor],
    live_columns: Sequence[ColumnDescriptor],
) -> list[Mismatch]:
    """Compare merged columns with a live table's columns.

    Columns are matched case-insensitively. Reports ``extra`` for merged
    columns the table lacks, ``case_difference`` for spellings that differ
    only in case, ``type_difference`` for differing types and ``missing``
    for table columns the merged schema lacks.
    """
    live_by_key = {column.name.casefold(): column for column in live_columns}
    mismatches: list[Mismatch] = []
    for column in columns:
        live = live_by_key.get(column.name.casefold())
        if live is None:
            mismatches.append(
                Mismatch(
                    column=column.name,
                    kind=MismatchKind.EXTRA,
                    severity=Severity.WARNING,
                    source_type=column.type,
                )
            )
            continue
        if live.name != column.name:
            mismatches.append(
                Mismatch(
                    column=column.name,
                    kind=MismatchKind.CASE_DIFFERENCE,
                    severity=Severity.INFO,
                    source_type=column.type,
                    target_type=live.type,
                )
            )
        if live.type is not column.type:
            mismatches.append(
                Mismatch(
                    column=column.name,
                    kind=MismatchKind.TYPE_DIFFERENCE,
                    severity=Severity.WARNING,
                    source_type=column.type,
                    target_type=live.type,
                )
            )
    merged_keys = {column.name.casefold() for column in columns}
    for live in live_columns:
        if live.name.casefold() not in merged_keys:
            mismatches.append(
                Mismatch(
                    column=live.name,
                    kind=MismatchKind.MISSING,
                    severity=Severity.WARNING,
                    target_type=live.type,
                )
            )
    return mismatches
