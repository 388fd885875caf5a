from typing import Any, Mapping

from sqlalchemy.sql.elements import ColumnElement


def contains_filters(
    columns: Mapping[str, ColumnElement],
    values: Mapping[str, Any],
) -> list[ColumnElement]:
    """
    Builds case-insensitive "contains" predicates for every non-empty value
    whose key is listed in `columns`. Terms are bound as parameters.
    """
    predicates = []
    for key, column in columns.items():
        term = values.get(key)
        if term:
            predicates.append(column.ilike(f"%{_escape_like(term)}%", escape="\\"))
    return predicates


def equals_filters(
    columns: Mapping[str, ColumnElement],
    values: Mapping[str, Any],
) -> list[ColumnElement]:
    predicates = []
    for key, column in columns.items():
        term = values.get(key)
        if term:
            predicates.append(column == term)
    return predicates


def _escape_like(term: str) -> str:
    return (
        str(term)
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
