"""Translate query descriptors into statements with SQLAlchemy Core.

Any dialect registered with SQLAlchemy can be targeted; statements use the
``named`` paramstyle so the parameters travel as a plain dict.
"""

from __future__ import annotations

import operator
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Mapping, Optional

import sqlalchemy as sa
from sqlalchemy.dialects import registry
from sqlalchemy.engine import Dialect
from sqlalchemy.exc import NoSuchModuleError

from ..errors import QueryCompileError
from ..models import WILDCARD, CompiledStatement, QueryDescriptor, TableRef

OR_KEY = "or"

# Operator keys accepted inside a criteria mapping, e.g. {"age": {">": 18}}
COMPARISONS = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "!": operator.ne,
    "!=": operator.ne,
}


@lru_cache(maxsize=None)
def get_dialect(name: str) -> Dialect:
    try:
        dialect_cls = registry.load(name)
    except NoSuchModuleError as e:
        raise QueryCompileError(f"Unknown SQL dialect: {name}") from e
    return dialect_cls(paramstyle="named")


def _resolve_table(ref: Any) -> tuple[Optional[str], Optional[str]]:
    if isinstance(ref, TableRef):
        return ref.table, ref.schema_
    return ref, None


def _criteria_columns(criteria: Mapping[str, Any]) -> List[str]:
    if not isinstance(criteria, Mapping):
        raise QueryCompileError(f"Criteria must be a mapping, got {criteria!r}")
    names: List[str] = []
    for key, value in criteria.items():
        if key == OR_KEY:
            if not isinstance(value, (list, tuple)) or not value:
                raise QueryCompileError("'or' criteria must be a non-empty list of mappings")
            for branch in value:
                names.extend(_criteria_columns(branch))
        else:
            names.append(key)
    return names


def _selected_columns(select: Any) -> List[str]:
    if select is None or select == WILDCARD:
        return []
    if isinstance(select, str):
        return [select]
    return list(select)


def _build_table(name: str, schema: Optional[str], columns: Iterable[str]) -> sa.TableClause:
    for col in columns:
        if not isinstance(col, str):
            raise QueryCompileError(f"Column identifiers must be strings, got {col!r}")
    return sa.table(name, *(sa.column(c) for c in dict.fromkeys(columns)), schema=schema)


def _in(column: sa.ColumnClause, values: Iterable[Any], negate: bool = False):
    # Explicit binds keep IN free of post-compile placeholders
    binds = [sa.literal(v) for v in values]
    if not binds:
        return sa.true() if negate else sa.false()
    return column.not_in(binds) if negate else column.in_(binds)


def _condition(column: sa.ColumnClause, value: Any):
    if value is None:
        return column.is_(None)
    if isinstance(value, (list, tuple, set)):
        return _in(column, value)
    if not isinstance(value, Mapping):
        return column == value
    if not value:
        raise QueryCompileError(f"Empty operator mapping for {column.name}")

    clauses = []
    for op, operand in value.items():
        if op in COMPARISONS:
            clauses.append(COMPARISONS[op](column, operand))
        elif op == "like":
            clauses.append(column.like(operand))
        elif op == "in":
            clauses.append(_in(column, operand))
        elif op == "nin":
            clauses.append(_in(column, operand, negate=True))
        else:
            raise QueryCompileError(f"Unsupported criteria operator {op!r} on {column.name}")
    return sa.and_(*clauses)


def _where_clause(table: sa.TableClause, criteria: Mapping[str, Any]):
    if not isinstance(criteria, Mapping) or not criteria:
        raise QueryCompileError("Criteria must be a non-empty mapping")
    clauses = []
    for key, value in criteria.items():
        if key == OR_KEY:
            clauses.append(sa.or_(*(_where_clause(table, branch) for branch in value)))
        else:
            clauses.append(_condition(table.c[key], value))
    return sa.and_(*clauses)


def _build_insert(query: QueryDescriptor):
    if not query.into:
        raise QueryCompileError("Insert queries need a target table; call into() first")
    if not query.insert:
        raise QueryCompileError("Insert queries need at least one column value")

    table = _build_table(query.into, None, query.insert.keys())
    return sa.insert(table).values(**query.insert)


def _build_select(query: QueryDescriptor):
    name, schema = _resolve_table(query.from_)
    if not name:
        raise QueryCompileError("Select queries need a table; call from_() first")

    selected = _selected_columns(query.select)
    criteria = query.where or {}
    table = _build_table(name, schema, selected + _criteria_columns(criteria))

    if selected:
        stmt = sa.select(*(table.c[c] for c in selected))
    else:
        stmt = sa.select(sa.literal_column(WILDCARD)).select_from(table)
    if criteria:
        stmt = stmt.where(_where_clause(table, criteria))
    if query.limit is not None:
        stmt = stmt.limit(query.limit)
    return stmt


def compile_descriptor(query: QueryDescriptor, dialect: str = "sqlite") -> CompiledStatement:
    """Compile *query* into a :class:`CompiledStatement` for *dialect*.

    Descriptors carrying insert values become INSERT statements, everything
    else becomes a SELECT.
    """
    stmt = _build_insert(query) if query.insert is not None else _build_select(query)
    compiled = stmt.compile(dialect=get_dialect(dialect))
    params: Dict[str, Any] = dict(compiled.params)
    return CompiledStatement(sql=str(compiled), params=params, dialect=dialect)
