"""Field-count validation for whitespace-delimited input tables."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
import os
from pathlib import Path
from typing import Optional, Union

from gpsvelstr.core import DatasetFile
from gpsvelstr.errors import (
    DatasetError,
    InconsistentFields,
    MissingFile,
    NonNumericField,
    WrongFieldCount,
)

_ERRORS = {
    MissingFile.kind: MissingFile,
    InconsistentFields.kind: InconsistentFields,
    WrongFieldCount.kind: WrongFieldCount,
}


def _as_path(path: Union[str, Path]) -> Path:
    return path if isinstance(path, Path) else Path(path)


def _is_readable_file(path: Path) -> bool:
    return path.is_file() and os.access(path, os.R_OK)


def read_rows(path: Union[str, Path]) -> Iterator[list[str]]:
    """Yield the whitespace-split data rows of ``path``; blank lines are skipped.

    Undecodable bytes (site names in legacy encodings) are replaced rather
    than rejected.
    """
    with _as_path(path).open("r", encoding="utf-8", errors="replace") as handle:
        for line in handle:
            fields = line.split()
            if fields:
                yield fields


def field_count_groups(path: Union[str, Path]) -> dict[int, int]:
    """Map each distinct field count to the number of rows having it."""
    groups: dict[int, int] = {}
    for fields in read_rows(path):
        groups[len(fields)] = groups.get(len(fields), 0) + 1
    return groups


def _describe(
    problem: str,
    path: Path,
    expected: int,
    groups: dict[int, int],
    at_least: bool,
) -> str:
    if problem == MissingFile.kind:
        return f'File "{path}" does not exist or is not readable.'
    if problem == InconsistentFields.kind:
        if not groups:
            return f'File "{path}" contains no data rows.'
        counts = ", ".join(str(count) for count in sorted(groups))
        return (
            f'File "{path}" contains inconsistent lines '
            f"(number of fields is not always the same: {counts})."
        )
    observed = next(iter(groups))
    bound = "at least " if at_least else ""
    return f'File "{path}" should contain {bound}{expected} fields, found {observed}.'


def inspect_dataset(
    path: Union[str, Path],
    expected_fields: int,
    *,
    at_least: bool = False,
) -> DatasetFile:
    """Check ``path`` without raising; problems are reported on the result."""
    target = _as_path(path)
    if not _is_readable_file(target):
        return DatasetFile(
            path=target,
            expected_fields=expected_fields,
            observed_fields=None,
            valid=False,
            problem=MissingFile.kind,
        )
    groups = field_count_groups(target)
    if len(groups) != 1:
        return DatasetFile(
            path=target,
            expected_fields=expected_fields,
            observed_fields=None,
            valid=False,
            problem=InconsistentFields.kind,
        )
    observed = next(iter(groups))
    matches = observed >= expected_fields if at_least else observed == expected_fields
    return DatasetFile(
        path=target,
        expected_fields=expected_fields,
        observed_fields=observed,
        valid=matches,
        problem=None if matches else WrongFieldCount.kind,
    )


def dataset_error(dataset: DatasetFile, *, at_least: bool = False) -> Optional[DatasetError]:
    """Build the exception matching an invalid ``dataset`` (``None`` when valid)."""
    if dataset.valid:
        return None
    groups: dict[int, int] = {}
    if dataset.problem != MissingFile.kind and _is_readable_file(dataset.path):
        groups = field_count_groups(dataset.path)
    message = _describe(
        dataset.problem or "",
        dataset.path,
        dataset.expected_fields,
        groups,
        at_least,
    )
    error_cls = _ERRORS.get(dataset.problem or "", DatasetError)
    return error_cls(
        message,
        context={
            "path": str(dataset.path),
            "expected_fields": dataset.expected_fields,
            "observed_fields": sorted(groups),
        },
    )


def numeric_error(
    dataset: DatasetFile,
    columns: Sequence[int],
) -> Optional[NonNumericField]:
    """First value of ``columns`` (1-based) that does not parse as a number."""
    for row_number, fields in enumerate(read_rows(dataset.path), start=1):
        for column in columns:
            value = fields[column - 1]
            try:
                float(value)
            except ValueError:
                return NonNumericField(
                    f'File "{dataset.path}" has a non-numeric value {value!r} '
                    f"in field {column} of data row {row_number}.",
                    context={
                        "path": str(dataset.path),
                        "row": row_number,
                        "field": column,
                    },
                )
    return None


def validate_dataset(
    path: Union[str, Path],
    expected_fields: int,
    *,
    at_least: bool = False,
) -> DatasetFile:
    """Return a valid ``DatasetFile`` or raise the matching ``DatasetError``."""
    dataset = inspect_dataset(path, expected_fields, at_least=at_least)
    error = dataset_error(dataset, at_least=at_least)
    if error is not None:
        raise error
    return dataset


__all__ = [
    "read_rows",
    "field_count_groups",
    "inspect_dataset",
    "dataset_error",
    "numeric_error",
    "validate_dataset",
]
