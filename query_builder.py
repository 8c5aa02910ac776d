"""
Parameterized query construction for the search screens.

A query starts from a base SELECT ending in ``WHERE 1=1``; every non-empty
filter appends one AND-ed clause and its parameters, so parameters are always
bound in the order the clauses were appended.
"""

from typing import Any, List, Optional, Sequence, Tuple

LIKE_ESCAPE = "\\"


def like_pattern(text: str) -> str:
    """Substring pattern for LIKE with the wildcard characters escaped."""
    escaped = (text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
               .replace("%", LIKE_ESCAPE + "%")
               .replace("_", LIKE_ESCAPE + "_"))
    return f"%{escaped}%"


class QueryBuilder:
    """Accumulates WHERE clauses and positional parameters."""

    def __init__(self, base_sql: str):
        self.base_sql = base_sql.strip()
        self.clauses: List[str] = []
        self.params: List[Any] = []
        self._order_by = ""
        self._limit = ""

    def add(self, clause: str, *params: Any) -> "QueryBuilder":
        """Append a clause unconditionally."""
        self.clauses.append(clause)
        self.params.extend(params)
        return self

    def add_like(self, columns: Sequence[str], text: str,
                 also_in: Optional[Tuple[str, Sequence[Any]]] = None) -> "QueryBuilder":
        """OR-group of substring matches over ``columns``; skipped for empty text.

        ``also_in`` is an optional ``(column, values)`` pair OR-ed into the
        group as ``column IN (...)``, for text that names stored keys.
        """
        if not text:
            return self
        pattern = like_pattern(text)
        terms = [f"{column} LIKE ? ESCAPE '{LIKE_ESCAPE}'" for column in columns]
        params = [pattern] * len(columns)
        if also_in and also_in[1]:
            column, values = also_in
            terms.append(f"{column} IN ({', '.join('?' for _ in values)})")
            params.extend(values)
        return self.add(f"({' OR '.join(terms)})", *params)

    def add_equals(self, column: str, value: Any) -> "QueryBuilder":
        """Exact-match filter; skipped when value is None or empty."""
        if value is None or value == "":
            return self
        return self.add(f"{column} = ?", value)

    def add_compare(self, column: str, operator: str, value: Any) -> "QueryBuilder":
        """Range filter such as ``>=``; skipped when value is None or empty."""
        if value is None or value == "":
            return self
        return self.add(f"{column} {operator} ?", value)

    def order_by(self, ordering: str) -> "QueryBuilder":
        self._order_by = ordering
        return self

    def limit(self, limit: int, offset: int = 0) -> "QueryBuilder":
        """Page the result; a non-positive limit means no limit."""
        if limit is not None and limit > 0:
            self._limit = f"LIMIT {int(limit)}"
            if offset and offset > 0:
                self._limit += f" OFFSET {int(offset)}"
        return self

    def build(self) -> Tuple[str, List[Any]]:
        sql = self.base_sql
        for clause in self.clauses:
            sql += f" AND {clause}"
        if self._order_by:
            sql += f" ORDER BY {self._order_by}"
        if self._limit:
            sql += f" {self._limit}"
        return sql, list(self.params)
