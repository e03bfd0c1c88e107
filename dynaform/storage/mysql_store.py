# ==============================================
# MySQLStore
# ==============================================
#
# PURPOSE:
#   Store contract on top of MySQL via PyMySQL. The four collections
#   map 1:1 onto tables; the wide form type fetch is a single
#   LEFT JOIN over form_types → form_fields → fields.
#
# TABLES (created on connect if missing):
# ---------------------------------------
#   fields(id PK AUTO_INCREMENT, name, data_type, options JSON NULL)
#   form_types(id PK AUTO_INCREMENT, name, description TEXT NULL)
#   form_fields(form_type_id FK, field_id FK, sort_order,
#               PRIMARY KEY (form_type_id, field_id))
#   records(id PK AUTO_INCREMENT, form_type_id, data JSON, created_at)
#
#   The form_fields foreign keys have no ON DELETE CASCADE: the
#   composer deletes join rows before the form type row.
#
# CLASS: MySQLStore
# -----------------
#   Stateful, holds connection to MySQL.
#
#   Constructor:
#   ------------
#   - __init__(host, port, user, password, database)
#       Store connection params. Don't connect yet.
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with MySQLStore(...) as store:` usage.
#
# ==============================================

import json
from typing import Any, Dict, List, Optional, Tuple

import pymysql
import pymysql.cursors

from dynaform.errors import NotFoundError, StoreError
from .base import Store


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS fields (
        id INT AUTO_INCREMENT PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        data_type VARCHAR(16) NOT NULL,
        options JSON NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS form_types (
        id INT AUTO_INCREMENT PRIMARY KEY,
        name VARCHAR(255) NOT NULL,
        description TEXT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS form_fields (
        form_type_id INT NOT NULL,
        field_id INT NOT NULL,
        sort_order INT NOT NULL,
        PRIMARY KEY (form_type_id, field_id),
        FOREIGN KEY (form_type_id) REFERENCES form_types(id),
        FOREIGN KEY (field_id) REFERENCES fields(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS records (
        id INT AUTO_INCREMENT PRIMARY KEY,
        form_type_id INT NOT NULL,
        data JSON NOT NULL,
        created_at VARCHAR(40) NOT NULL,
        INDEX idx_records_form_created (form_type_id, created_at)
    )
    """,
]

# Writable columns per table (anything else in a row dict is ignored)
COLUMNS = {
    "fields": ("name", "data_type", "options"),
    "form_types": ("name", "description"),
    "records": ("form_type_id", "data", "created_at"),
}
JSON_COLUMNS = {"options", "data"}


class MySQLStore(Store):
    name = "mysql"

    def __init__(self, host, port, user, password, database):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connection = None

    def connect(self) -> None:
        # Establish connection to MySQL, create database and tables if missing
        try:
            self.connection = pymysql.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
            )
            cursor = self.connection.cursor()
            cursor.execute(f"CREATE DATABASE IF NOT EXISTS {self.database}")
            cursor.execute(f"USE {self.database}")
            for statement in SCHEMA_STATEMENTS:
                cursor.execute(statement)
            self.connection.commit()
            cursor.close()
        except pymysql.MySQLError as e:
            print(f"✗ Could not connect to MySQL: {e}")
            raise StoreError(f"MySQL connection failed: {e}") from e
        print(f"✓ Connected to MySQL database '{self.database}'.")

    def disconnect(self) -> None:
        if self.connection:
            self.connection.close()
            self.connection = None
            print("Disconnected from MySQL.")

    # ======================================
    # Internal helpers
    # ======================================
    def _run(self, query: str, params: Optional[Tuple] = None, fetch: bool = True) -> Tuple[List[Dict[str, Any]], Optional[int]]:
        """Execute one statement, commit, return (rows, lastrowid)."""
        if self.connection is None:
            raise StoreError("Not connected to MySQL")
        cursor = self.connection.cursor(pymysql.cursors.DictCursor)
        try:
            cursor.execute(query, params)
            rows = list(cursor.fetchall()) if fetch else []
            self.connection.commit()
            return rows, cursor.lastrowid
        except pymysql.MySQLError as e:
            self.connection.rollback()
            raise StoreError(f"MySQL query failed: {e}") from e
        finally:
            cursor.close()

    @staticmethod
    def _encode(column: str, value: Any) -> Any:
        if column in JSON_COLUMNS and value is not None:
            return json.dumps(value)
        return value

    @staticmethod
    def _decode_row(row: Dict[str, Any]) -> Dict[str, Any]:
        decoded = dict(row)
        for column in JSON_COLUMNS:
            if isinstance(decoded.get(column), (str, bytes)):
                decoded[column] = json.loads(decoded[column])
        return decoded

    def _select_one(self, table: str, entity_id: Any) -> Dict[str, Any]:
        rows, _ = self._run(f"SELECT * FROM {table} WHERE id = %s", (entity_id,))
        if not rows:
            raise NotFoundError(table, entity_id)
        return self._decode_row(rows[0])

    def _insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        columns = [c for c in COLUMNS[table] if c in row]
        placeholders = ", ".join(["%s"] * len(columns))
        values = tuple(self._encode(c, row[c]) for c in columns)
        _, new_id = self._run(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            values,
            fetch=False,
        )
        return self._select_one(table, new_id)

    def _update(self, table: str, entity_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        columns = [c for c in COLUMNS[table] if c in row]
        self._select_one(table, entity_id)
        if columns:
            set_clause = ", ".join(f"{c} = %s" for c in columns)
            values = tuple(self._encode(c, row[c]) for c in columns) + (entity_id,)
            self._run(f"UPDATE {table} SET {set_clause} WHERE id = %s", values, fetch=False)
        return self._select_one(table, entity_id)

    def _delete(self, table: str, entity_id: Any) -> None:
        self._select_one(table, entity_id)
        self._run(f"DELETE FROM {table} WHERE id = %s", (entity_id,), fetch=False)

    # ======================================
    # Fields
    # ======================================
    def list_fields(self) -> List[Dict[str, Any]]:
        rows, _ = self._run("SELECT * FROM fields ORDER BY name")
        return [self._decode_row(row) for row in rows]

    def get_field(self, field_id: Any) -> Dict[str, Any]:
        return self._select_one("fields", field_id)

    def insert_field(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._insert("fields", row)

    def update_field(self, field_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._update("fields", field_id, row)

    def delete_field(self, field_id: Any) -> None:
        self._delete("fields", field_id)

    # ======================================
    # Form types
    # ======================================
    def _wide_query(self, where: str = "", params: Optional[Tuple] = None) -> List[Dict[str, Any]]:
        rows, _ = self._run(
            "SELECT ft.id AS ft_id, ft.name AS ft_name, ft.description AS ft_description, "
            "ff.field_id AS ff_field_id, ff.sort_order AS ff_sort_order, "
            "f.id AS f_id, f.name AS f_name, f.data_type AS f_data_type, f.options AS f_options "
            "FROM form_types ft "
            "LEFT JOIN form_fields ff ON ff.form_type_id = ft.id "
            "LEFT JOIN fields f ON f.id = ff.field_id "
            f"{where} ORDER BY ft.name, ft.id, ff.sort_order",
            params,
        )

        # Fold the joined rows back into one wide row per form type
        forms: Dict[Any, Dict[str, Any]] = {}
        for row in rows:
            form = forms.setdefault(row["ft_id"], {
                "id": row["ft_id"],
                "name": row["ft_name"],
                "description": row["ft_description"],
                "form_fields": [],
            })
            if row["ff_field_id"] is None:
                continue
            field_row = None
            if row["f_id"] is not None:
                field_row = self._decode_row({
                    "id": row["f_id"],
                    "name": row["f_name"],
                    "data_type": row["f_data_type"],
                    "options": row["f_options"],
                })
            form["form_fields"].append({
                "field_id": row["ff_field_id"],
                "sort_order": row["ff_sort_order"],
                "field": field_row,
            })
        return list(forms.values())

    def list_form_types(self) -> List[Dict[str, Any]]:
        return self._wide_query()

    def get_form_type(self, form_type_id: Any) -> Dict[str, Any]:
        forms = self._wide_query("WHERE ft.id = %s", (form_type_id,))
        if not forms:
            raise NotFoundError("form_types", form_type_id)
        return forms[0]

    def insert_form_type(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._insert("form_types", row)

    def update_form_type(self, form_type_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._update("form_types", form_type_id, row)

    def delete_form_type(self, form_type_id: Any) -> None:
        self._delete("form_types", form_type_id)

    # ======================================
    # form_fields join table
    # ======================================
    def list_form_fields(self, form_type_id: Any) -> List[Dict[str, Any]]:
        rows, _ = self._run(
            "SELECT form_type_id, field_id, sort_order FROM form_fields "
            "WHERE form_type_id = %s ORDER BY sort_order",
            (form_type_id,),
        )
        return rows

    def insert_form_fields(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not rows:
            return []
        if self.connection is None:
            raise StoreError("Not connected to MySQL")
        cursor = self.connection.cursor()
        try:
            cursor.executemany(
                "INSERT INTO form_fields (form_type_id, field_id, sort_order) VALUES (%s, %s, %s)",
                [(r["form_type_id"], r["field_id"], r["sort_order"]) for r in rows],
            )
            self.connection.commit()
        except pymysql.MySQLError as e:
            self.connection.rollback()
            raise StoreError(f"MySQL form_fields insert failed: {e}") from e
        finally:
            cursor.close()
        return [dict(r) for r in rows]

    def delete_form_fields(self, form_type_id: Any) -> None:
        self._run("DELETE FROM form_fields WHERE form_type_id = %s", (form_type_id,), fetch=False)

    # ======================================
    # Records
    # ======================================
    def list_records(self, form_type_id: Optional[Any] = None) -> List[Dict[str, Any]]:
        if form_type_id is None:
            rows, _ = self._run("SELECT * FROM records ORDER BY created_at DESC")
        else:
            rows, _ = self._run(
                "SELECT * FROM records WHERE form_type_id = %s ORDER BY created_at DESC",
                (form_type_id,),
            )
        return [self._decode_row(row) for row in rows]

    def get_record(self, record_id: Any) -> Dict[str, Any]:
        return self._select_one("records", record_id)

    def insert_record(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._insert("records", row)

    def update_record(self, record_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._update("records", record_id, row)

    def delete_record(self, record_id: Any) -> None:
        self._delete("records", record_id)
