import pytest

from ddlrace.statements import (
    build_alter_sql,
    build_create_table_sql,
    build_delete_sql,
    build_insert_sql,
    build_set_global_sql,
    quote_identifier,
)


def test_insert_has_one_tuple_per_row() -> None:
    sql = build_insert_sql("uniq", "rows", 3)
    assert sql == (
        "INSERT INTO `uniq`.`rows` (val0, val1, padding) "
        "VALUES (%s, %s, %s), (%s, %s, %s), (%s, %s, %s)"
    )


def test_delete_uses_in_list_on_val0() -> None:
    assert build_delete_sql("uniq", "rows", 2) == "DELETE FROM `uniq`.`rows` WHERE val0 IN (%s, %s)"


@pytest.mark.parametrize("builder", [build_insert_sql, build_delete_sql])
def test_empty_statements_rejected(builder) -> None:
    with pytest.raises(ValueError):
        builder("uniq", "rows", 0)


def test_alter_modifies_column_type() -> None:
    assert (
        build_alter_sql("uniq", "rows", "val0", "bigint")
        == "ALTER TABLE `uniq`.`rows` MODIFY COLUMN `val0` bigint NOT NULL"
    )


def test_create_table_sizes_padding_column() -> None:
    sql = build_create_table_sql("uniq", "rows", 256)
    assert sql.startswith("CREATE TABLE `uniq`.`rows` (")
    assert "padding varchar(256) NOT NULL DEFAULT ''" in sql
    assert "PRIMARY KEY (id)" in sql
    assert build_create_table_sql("uniq", "rows", 8, if_not_exists=True).startswith(
        "CREATE TABLE IF NOT EXISTS `uniq`.`rows`"
    )


def test_identifiers_escape_backticks() -> None:
    assert quote_identifier("we`ird") == "`we``ird`"


def test_set_global_renders_values() -> None:
    statements = build_set_global_sql(
        {"tidb_ddl_reorg_worker_cnt": 1, "tidb_enable_x": True, "sql_mode": "it's"}
    )
    assert statements == {
        "tidb_ddl_reorg_worker_cnt": "SET @@global.tidb_ddl_reorg_worker_cnt = 1",
        "tidb_enable_x": "SET @@global.tidb_enable_x = ON",
        "sql_mode": "SET @@global.sql_mode = 'it''s'",
    }
