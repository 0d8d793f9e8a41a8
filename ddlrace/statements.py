"""SQL text for the race workload. Values always travel as parameters."""

from __future__ import annotations

from typing import Dict

INSERT_COLUMNS = ("val0", "val1", "padding")


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def qualified_table(database: str, table: str) -> str:
    return f"{quote_identifier(database)}.{quote_identifier(table)}"


def build_insert_sql(database: str, table: str, row_count: int) -> str:
    if row_count < 1:
        raise ValueError("insert needs at least one row")
    columns_sql = ", ".join(INSERT_COLUMNS)
    single_values_sql = "(" + ", ".join(["%s"] * len(INSERT_COLUMNS)) + ")"
    values_sql = ", ".join([single_values_sql] * row_count)
    return f"INSERT INTO {qualified_table(database, table)} ({columns_sql}) VALUES {values_sql}"


def build_delete_sql(database: str, table: str, key_count: int) -> str:
    if key_count < 1:
        raise ValueError("delete needs at least one key")
    placeholders = ", ".join(["%s"] * key_count)
    return f"DELETE FROM {qualified_table(database, table)} WHERE val0 IN ({placeholders})"


def build_alter_sql(database: str, table: str, column: str, column_type: str) -> str:
    return (
        f"ALTER TABLE {qualified_table(database, table)} "
        f"MODIFY COLUMN {quote_identifier(column)} {column_type} NOT NULL"
    )


def build_create_table_sql(
    database: str, table: str, padding_size: int, *, if_not_exists: bool = False
) -> str:
    guard = "IF NOT EXISTS " if if_not_exists else ""
    return (
        f"CREATE TABLE {guard}{qualified_table(database, table)} (\n"
        "    id int NOT NULL AUTO_INCREMENT,\n"
        "    val0 int NOT NULL,\n"
        "    val1 int NOT NULL,\n"
        f"    padding varchar({int(padding_size)}) NOT NULL DEFAULT '',\n"
        "    PRIMARY KEY (id)\n"
        ")"
    )


def build_set_global_sql(variables: Dict[str, object]) -> Dict[str, str]:
    """Map each variable name to its ``SET @@global`` statement."""
    statements: Dict[str, str] = {}
    for name, value in variables.items():
        if isinstance(value, bool):
            rendered = "ON" if value else "OFF"
        elif isinstance(value, (int, float)):
            rendered = str(value)
        else:
            rendered = "'" + str(value).replace("'", "''") + "'"
        statements[name] = f"SET @@global.{name} = {rendered}"
    return statements
