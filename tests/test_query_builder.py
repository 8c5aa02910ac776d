from query_builder import QueryBuilder, like_pattern


def test_empty_filters_leave_base_query():
    sql, params = QueryBuilder("SELECT * FROM assets WHERE 1=1").add_like(["name"], "") \
        .add_equals("status", "").add_equals("category_id", None).build()
    assert sql == "SELECT * FROM assets WHERE 1=1"
    assert params == []


def test_params_follow_clause_order():
    sql, params = (QueryBuilder("SELECT * FROM assets a WHERE 1=1")
                   .add_like(["a.asset_code", "a.name"], "笔记本")
                   .add_equals("a.category_id", 3)
                   .add_equals("a.status", "在用")
                   .order_by("a.id DESC")
                   .limit(20, 40)
                   .build())
    assert sql == ("SELECT * FROM assets a WHERE 1=1"
                   " AND (a.asset_code LIKE ? ESCAPE '\\' OR a.name LIKE ? ESCAPE '\\')"
                   " AND a.category_id = ? AND a.status = ?"
                   " ORDER BY a.id DESC LIMIT 20 OFFSET 40")
    assert params == ["%笔记本%", "%笔记本%", 3, "在用"]


def test_like_pattern_escapes_wildcards():
    assert like_pattern("100%_a\\b") == "%100\\%\\_a\\\\b%"


def test_non_positive_limit_is_ignored():
    sql, _ = QueryBuilder("SELECT 1 WHERE 1=1").limit(-1, 10).build()
    assert "LIMIT" not in sql


def test_add_compare():
    sql, params = (QueryBuilder("SELECT * FROM asset_change_logs WHERE 1=1")
                   .add_compare("change_time", ">=", "2024-01-01")
                   .add_compare("change_time", "<=", "")
                   .build())
    assert sql.endswith("AND change_time >= ?")
    assert params == ["2024-01-01"]


def test_like_group_with_key_list():
    sql, params = (QueryBuilder("SELECT * FROM asset_change_logs WHERE 1=1")
                   .add_like(["asset_code", "field_name"], "价格", also_in=("field_name", ["price"]))
                   .build())
    assert sql.endswith("(asset_code LIKE ? ESCAPE '\\' OR field_name LIKE ? ESCAPE '\\'"
                        " OR field_name IN (?))")
    assert params == ["%价格%", "%价格%", "price"]


def test_empty_key_list_adds_no_in_term():
    sql, params = QueryBuilder("SELECT 1 WHERE 1=1").add_like(["a"], "x", also_in=("a", [])).build()
    assert "IN" not in sql
    assert params == ["%x%"]
