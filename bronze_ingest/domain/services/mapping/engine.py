"""Column mapping engine.

This module provides the ColumnMapper class, which maps one file's source
columns onto a fixed list of target columns and converts the raw text of
each mapped cell to a typed value.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rapidfuzz.distance import Levenshtein

from ....constants import Defaults, ErrorCodes, Remediation
from ...entities.export import RowError
from ...entities.schema import (
    ColumnAssignment,
    ColumnMapping,
    MatchKind,
    Mismatch,
    MismatchKind,
    Severity,
)
from .conversion import CellValue, ValueConversionError, ValueConverter
from .utils import clean_column_name

if TYPE_CHECKING:
    from collections.abc import Sequence

# Insertion, deletion, substitution.
EDIT_WEIGHTS = (1, 1, 2)


def _empty_values() -> dict[str, CellValue]:
    return {}


def _empty_errors() -> list[RowError]:
    return []


@dataclass(slots=True)
class MappedRow:
    values: dict[str, CellValue] = field(default_factory=_empty_values)
    errors: list[RowError] = field(default_factory=_empty_errors)

    @property
    def ok(self) -> bool:
        return not self.errors


class ColumnMapper:
    """Map source columns onto target columns and convert row values.

    Matching runs in three passes over the source columns, each pass only
    considering targets not yet claimed:

    1. exact name (case-sensitive, or case-insensitive when configured)
    2. cleaned name: lowercased, known prefix/suffix and trailing digits
       removed
    3. weighted edit distance of cleaned names within ``max_distance``

    Assignment is greedy. In the third pass the first unclaimed target in
    declared order within the distance bound wins, even when a later
    target would be closer.

    Example:
        >>> mapper = ColumnMapper(["Name", "Age"])
        >>> mapping = mapper.map_columns(["name ", " AGE"])
        >>> mapping.as_dict()
        {'name ': 'Name', ' AGE': 'Age'}
    """

    def __init__(
        self,
        target_columns: Sequence[str],
        *,
        case_sensitive: bool = False,
        max_distance: int = Defaults.MAX_EDIT_DISTANCE,
        converter: ValueConverter | None = None,
    ) -> None:
        """Initialize the mapper.

        Args:
            target_columns: Target column names in declared order
            case_sensitive: Whether the exact pass compares case-sensitively
            max_distance: Largest accepted weighted edit distance
            converter: Value converter used by ``map_row``
        """
        self.target_columns: list[str] = list(target_columns)
        self.case_sensitive = case_sensitive
        self.max_distance = max_distance
        self.converter = converter or ValueConverter()
        self._cleaned_targets = [clean_column_name(t) for t in self.target_columns]

    def map_columns(self, source_columns: Sequence[str]) -> ColumnMapping:
        """Assign targets to ``source_columns`` and report mismatches.

        Args:
            source_columns: Source column names in file order

        Returns:
            ColumnMapping with one assignment per matched source position
        """
        sources = list(source_columns)
        assigned: dict[int, ColumnAssignment] = {}
        claimed: set[int] = set()

        def assign(source_index: int, target_index: int, kind: MatchKind) -> None:
            claimed.add(target_index)
            assigned[source_index] = ColumnAssignment(
                source_index=source_index,
                source_column=sources[source_index],
                target_column=self.target_columns[target_index],
                match_kind=kind,
            )

        for index, source in enumerate(sources):
            match = self._exact_match(source, claimed)
            if match is not None:
                assign(index, *match)

        cleaned_sources = [clean_column_name(source) for source in sources]
        for index, cleaned in enumerate(cleaned_sources):
            if index in assigned or not cleaned:
                continue
            target_index = self._normalized_match(cleaned, claimed)
            if target_index is not None:
                assign(index, target_index, MatchKind.NORMALIZED)

        for index, cleaned in enumerate(cleaned_sources):
            if index in assigned or not cleaned:
                continue
            target_index = self._fuzzy_match(cleaned, claimed)
            if target_index is not None:
                assign(index, target_index, MatchKind.FUZZY)

        assignments = [assigned[index] for index in sorted(assigned)]
        return ColumnMapping(
            source_columns=sources,
            target_columns=list(self.target_columns),
            assignments=assignments,
            mismatches=self._mismatches(sources, assigned, claimed),
        )

    def map_row(
        self,
        row: Sequence[str],
        mapping: ColumnMapping,
        *,
        row_index: int,
        source_id: str | None = None,
    ) -> MappedRow:
        """Convert one raw row into values keyed by target column.

        Every target column is present in the result; targets with no
        mapped source are ``None``. A failed conversion nulls the cell and
        records a RowError, the rest of the row is still converted.
        """
        result = MappedRow(values=dict.fromkeys(mapping.target_columns))
        for assignment in mapping.assignments:
            raw = row[assignment.source_index] if assignment.source_index < len(row) else ""
            try:
                result.values[assignment.target_column] = self.converter.convert(
                    raw, assignment.target_column
                )
            except ValueConversionError as e:
                result.errors.append(
                    RowError(
                        row_index=row_index,
                        column=assignment.target_column,
                        error_code=ErrorCodes.CONVERSION_ERROR,
                        raw_value=raw,
                        remediation=Remediation.CONVERSION,
                        message=str(e),
                        source_id=source_id,
                    )
                )
        return result

    def _exact_match(self, source: str, claimed: set[int]) -> tuple[int, MatchKind] | None:
        for index, target in enumerate(self.target_columns):
            if index not in claimed and source == target:
                return index, MatchKind.EXACT
        if self.case_sensitive:
            return None
        folded = source.casefold()
        for index, target in enumerate(self.target_columns):
            if index not in claimed and folded == target.casefold():
                return index, MatchKind.CASE_INSENSITIVE
        return None

    def _normalized_match(self, cleaned: str, claimed: set[int]) -> int | None:
        for index, target in enumerate(self._cleaned_targets):
            if index not in claimed and cleaned == target:
                return index
        return None

    def _fuzzy_match(self, cleaned: str, claimed: set[int]) -> int | None:
        for index, target in enumerate(self._cleaned_targets):
            if index in claimed or not target:
                continue
            distance = Levenshtein.distance(
                cleaned,
                target,
                weights=EDIT_WEIGHTS,
                score_cutoff=self.max_distance,
            )
            if distance <= self.max_distance:
                return index
        return None

    def _mismatches(
        self,
        sources: list[str],
        assigned: dict[int, ColumnAssignment],
        claimed: set[int],
    ) -> list[Mismatch]:
        mismatches: list[Mismatch] = []
        for index, source in enumerate(sources):
            assignment = assigned.get(index)
            if assignment is None:
                mismatches.append(
                    Mismatch(
                        column=source,
                        kind=MismatchKind.EXTRA,
                        severity=Severity.WARNING,
                    )
                )
            elif assignment.match_kind in (MatchKind.NORMALIZED, MatchKind.FUZZY):
                mismatches.append(
                    Mismatch(
                        column=source,
                        kind=MismatchKind.CASE_DIFFERENCE,
                        severity=Severity.INFO,
                    )
                )
        for index, target in enumerate(self.target_columns):
            if index not in claimed:
                mismatches.append(
                    Mismatch(
                        column=target,
                        kind=MismatchKind.MISSING,
                        severity=Severity.WARNING,
                    )
                )
        return mismatches
