# backend/residenthub/scoping.py
"""Translate access.ListScope into SQLAlchemy filters."""

from __future__ import annotations

from sqlalchemy import false, or_
from sqlalchemy.orm import Query

from .access import ListScope, ScopeKind


def apply_list_scope(
    query: Query,
    scope: ListScope,
    *,
    society_column=None,
    unit_column=None,
    author_column=None,
    expires_column=None,
) -> Query:
    """
    Narrow `query` to the rows `scope` allows.

    Callers pass the columns that carry the scope on their model. A scope that
    needs a column the caller did not provide matches nothing.
    """
    if scope.kind == ScopeKind.NONE:
        return query.filter(false())

    if scope.kind == ScopeKind.SOCIETY:
        if society_column is None:
            return query.filter(false())
        query = query.filter(society_column == scope.society_id)
    elif scope.kind == ScopeKind.UNIT:
        if unit_column is None:
            return query.filter(false())
        query = query.filter(unit_column == scope.unit_id)
        if society_column is not None:
            query = query.filter(society_column == scope.society_id)
    elif scope.kind == ScopeKind.AUTHOR:
        if author_column is None:
            return query.filter(false())
        query = query.filter(author_column == scope.author_id)

    if scope.exclude_expired and expires_column is not None:
        query = query.filter(or_(expires_column.is_(None), expires_column > scope.now))
    return query
