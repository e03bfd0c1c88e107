# ==============================================
# MongoStore
# ==============================================
#
# PURPOSE:
#   Store contract on top of MongoDB via PyMongo. One collection per
#   table (fields, form_types, form_fields, records). Document `_id`
#   ObjectIds are exposed as hex strings under "id"; references
#   inside form_fields and records hold those strings.
#
# CLASS: MongoStore
# -----------------
#   Stateful, holds connection to MongoDB.
#
#   Constructor:
#   ------------
#   - __init__(host, port, database, user=None, password=None)
#
#   Methods beyond the contract:
#   ----------------------------
#   - ensure_indexes() -> None
#       form_fields (form_type_id, field_id) unique,
#       records (form_type_id, created_at).
#
#   Context Manager:
#   ----------------
#   - __enter__ / __exit__ for `with MongoStore(...) as store:` usage.
#
# ==============================================

from typing import Any, Dict, List, Optional

import pymongo
from pymongo import MongoClient as PyMongoClient
from pymongo.errors import PyMongoError
from bson import ObjectId
from bson.errors import InvalidId

from dynaform.errors import NotFoundError, StoreError
from dynaform.schema.models import key_of
from .base import Store, assemble_form_type


class MongoStore(Store):
    name = "mongo"

    def __init__(self, host, port, database, user=None, password=None):
        # Store connection params. Don't connect yet.
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.client = None

    def connect(self) -> None:
        try:
            if self.user and self.password:
                uri = f"mongodb://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"
            else:
                uri = f"mongodb://{self.host}:{self.port}/{self.database}"
            self.client = PyMongoClient(uri)
            self.client.admin.command("ping")
            self.ensure_indexes()
        except PyMongoError as e:
            print(f"✗ Could not connect to MongoDB: {e}")
            raise StoreError(f"MongoDB connection failed: {e}") from e
        print("✓ Connected to MongoDB successfully.")

    def disconnect(self) -> None:
        if self.client:
            self.client.close()
            self.client = None
            print("Disconnected from MongoDB.")

    def ensure_indexes(self) -> None:
        db = self._db()
        db["form_fields"].create_index(
            [("form_type_id", pymongo.ASCENDING), ("field_id", pymongo.ASCENDING)],
            unique=True,
        )
        db["records"].create_index(
            [("form_type_id", pymongo.ASCENDING), ("created_at", pymongo.DESCENDING)]
        )
        db["fields"].create_index("name")
        db["form_types"].create_index("name")

    # ======================================
    # Internal helpers
    # ======================================
    def _db(self):
        if not self.client:
            raise StoreError("Not connected to MongoDB.")
        return self.client[self.database]

    @staticmethod
    def _oid(collection: str, entity_id: Any) -> ObjectId:
        try:
            return ObjectId(str(entity_id))
        except InvalidId as e:
            raise NotFoundError(collection, entity_id) from e

    @staticmethod
    def _out(document: Dict[str, Any]) -> Dict[str, Any]:
        row = {k: v for k, v in document.items() if k != "_id"}
        row["id"] = str(document["_id"])
        return row

    def _find_one(self, collection: str, entity_id: Any) -> Dict[str, Any]:
        try:
            document = self._db()[collection].find_one({"_id": self._oid(collection, entity_id)})
        except PyMongoError as e:
            raise StoreError(f"MongoDB find failed: {e}") from e
        if document is None:
            raise NotFoundError(collection, entity_id)
        return self._out(document)

    def _find(self, collection: str, query: Dict[str, Any], sort: List) -> List[Dict[str, Any]]:
        try:
            return [self._out(doc) for doc in self._db()[collection].find(query).sort(sort)]
        except PyMongoError as e:
            raise StoreError(f"MongoDB find failed: {e}") from e

    def _insert(self, collection: str, row: Dict[str, Any]) -> Dict[str, Any]:
        document = {k: v for k, v in row.items() if k != "id"}
        try:
            result = self._db()[collection].insert_one(document)
        except PyMongoError as e:
            raise StoreError(f"MongoDB insert failed: {e}") from e
        return self._find_one(collection, result.inserted_id)

    def _update(self, collection: str, entity_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        changes = {k: v for k, v in row.items() if k != "id"}
        try:
            result = self._db()[collection].update_one(
                {"_id": self._oid(collection, entity_id)}, {"$set": changes}
            )
        except PyMongoError as e:
            raise StoreError(f"MongoDB update failed: {e}") from e
        if result.matched_count == 0:
            raise NotFoundError(collection, entity_id)
        return self._find_one(collection, entity_id)

    def _delete(self, collection: str, entity_id: Any) -> None:
        try:
            result = self._db()[collection].delete_one({"_id": self._oid(collection, entity_id)})
        except PyMongoError as e:
            raise StoreError(f"MongoDB delete failed: {e}") from e
        if result.deleted_count == 0:
            raise NotFoundError(collection, entity_id)

    def _links(self, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            documents = self._db()["form_fields"].find(query).sort("sort_order", pymongo.ASCENDING)
            return [
                {k: v for k, v in doc.items() if k != "_id"}
                for doc in documents
            ]
        except PyMongoError as e:
            raise StoreError(f"MongoDB find failed: {e}") from e

    def _wide(self, form_rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        form_keys = [row["id"] for row in form_rows]
        links = self._links({"form_type_id": {"$in": form_keys}})
        fields_by_key = {row["id"]: row for row in self.list_fields()}
        return [
            assemble_form_type(
                form_row,
                [link for link in links if link["form_type_id"] == form_row["id"]],
                fields_by_key,
            )
            for form_row in form_rows
        ]

    # ======================================
    # Fields
    # ======================================
    def list_fields(self) -> List[Dict[str, Any]]:
        return self._find("fields", {}, [("name", pymongo.ASCENDING)])

    def get_field(self, field_id: Any) -> Dict[str, Any]:
        return self._find_one("fields", field_id)

    def insert_field(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._insert("fields", row)

    def update_field(self, field_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._update("fields", field_id, row)

    def delete_field(self, field_id: Any) -> None:
        if self._links({"field_id": key_of(field_id)}):
            raise StoreError(f"fields row '{field_id}' is still referenced by form_fields")
        self._delete("fields", field_id)

    # ======================================
    # Form types
    # ======================================
    def list_form_types(self) -> List[Dict[str, Any]]:
        return self._wide(self._find("form_types", {}, [("name", pymongo.ASCENDING)]))

    def get_form_type(self, form_type_id: Any) -> Dict[str, Any]:
        return self._wide([self._find_one("form_types", form_type_id)])[0]

    def insert_form_type(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._insert("form_types", row)

    def update_form_type(self, form_type_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._update("form_types", form_type_id, row)

    def delete_form_type(self, form_type_id: Any) -> None:
        if self._links({"form_type_id": key_of(form_type_id)}):
            raise StoreError(f"form_types row '{form_type_id}' is still referenced by form_fields")
        self._delete("form_types", form_type_id)

    # ======================================
    # form_fields join table
    # ======================================
    def list_form_fields(self, form_type_id: Any) -> List[Dict[str, Any]]:
        return self._links({"form_type_id": key_of(form_type_id)})

    def insert_form_fields(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        documents = [
            {
                "form_type_id": key_of(row["form_type_id"]),
                "field_id": key_of(row["field_id"]),
                "sort_order": row["sort_order"],
            }
            for row in rows
        ]
        if not documents:
            return []
        try:
            self._db()["form_fields"].insert_many([dict(doc) for doc in documents])
        except PyMongoError as e:
            raise StoreError(f"MongoDB form_fields insert failed: {e}") from e
        return documents

    def delete_form_fields(self, form_type_id: Any) -> None:
        try:
            self._db()["form_fields"].delete_many({"form_type_id": key_of(form_type_id)})
        except PyMongoError as e:
            raise StoreError(f"MongoDB form_fields delete failed: {e}") from e

    # ======================================
    # Records
    # ======================================
    def list_records(self, form_type_id: Optional[Any] = None) -> List[Dict[str, Any]]:
        query = {} if form_type_id is None else {"form_type_id": key_of(form_type_id)}
        return self._find("records", query, [("created_at", pymongo.DESCENDING)])

    def get_record(self, record_id: Any) -> Dict[str, Any]:
        return self._find_one("records", record_id)

    def insert_record(self, row: Dict[str, Any]) -> Dict[str, Any]:
        document = dict(row)
        document["form_type_id"] = key_of(row["form_type_id"])
        return self._insert("records", document)

    def update_record(self, record_id: Any, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._update("records", record_id, row)

    def delete_record(self, record_id: Any) -> None:
        self._delete("records", record_id)
