"""MongoDB database provider.

Each aggregate is stored as one document in its own collection, with the
aggregate identity kept in MongoDB's ``_id``. Value objects are flattened
into shadow fields (``pricing_total``); lists of value objects are embedded
as arrays of sub-documents so that aggregation pipelines can ``$unwind``
them.

A ``database_uri`` with the ``mongomock://`` scheme runs against an
in-process mongomock server instead of a live MongoDB.
"""

import logging
import re
from collections.abc import Sequence
from enum import Enum
from typing import Any

import mongomock
import pymongo
from protean.core.database_model import BaseDatabaseModel
from protean.core.queryset import ResultSet
from protean.core.value_object import BaseValueObject
from protean.exceptions import (
    ExpectedVersionError,
    NotSupportedError,
    ObjectNotFoundError,
    ValidationError,
)
from protean.port.dao import BaseDAO, BaseLookup
from protean.port.provider import BaseProvider, DatabaseCapabilities, registry
from protean.utils import _fully_qualified_name
from protean.utils.container import Options
from protean.utils.globals import current_uow
from protean.utils.query import Q
from protean.utils.reflection import id_field
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

logger = logging.getLogger(__name__)

MOCK_SCHEME = "mongomock://"
COUNTERS = "counters"


def _document_value(value: Any) -> Any:
    """Convert an attribute value into something BSON can store."""
    if isinstance(value, BaseValueObject):
        return {key: _document_value(item) for key, item in value.model_dump().items()}
    if isinstance(value, list | tuple):
        return [_document_value(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value


class MongoModel(BaseDatabaseModel):
    """Plain-dict database model for MongoDB collections"""

    @classmethod
    def storage_key(cls, attribute_name: str) -> str:
        id_f = id_field(cls.meta_.part_of)
        if id_f is not None and attribute_name == id_f.attribute_name:
            return "_id"
        return attribute_name

    @classmethod
    def _get_value(cls, item: dict[str, Any], key: str) -> Any:
        return item.get(cls.storage_key(key))

    @classmethod
    def from_entity(cls, entity: Any) -> dict[str, Any]:
        return {
            cls.storage_key(key): _document_value(value) for key, value in cls._entity_to_dict(entity).items()
        }


class MongoSession:
    """MongoDB writes are applied eagerly, so the session is a passthrough."""

    def __init__(self, provider: "MongoProvider") -> None:
        self._provider = provider
        self.db = provider.database
        self.is_active = True

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass

    def close(self) -> None:
        pass


class MongoDAO(BaseDAO):
    provider: "MongoProvider"

    def __repr__(self) -> str:
        return f"MongoDAO <{self.entity_cls.__name__}>"

    @property
    def collection(self) -> Any:
        return self.provider.database[self.schema_name]

    def _build_filters(self, criteria: Q) -> dict[str, Any]:
        """Recursively translate a criteria tree into a MongoDB filter document"""
        clauses = []
        for child in criteria.children:
            if isinstance(child, Q):
                clause = self._build_filters(child)
            else:
                stripped_key, lookup_class = self.provider._extract_lookup(child[0])
                clause = lookup_class(stripped_key, child[1], database_model_cls=self.database_model_cls).as_expression()
            if clause:
                clauses.append(clause)

        if not clauses:
            expression: dict[str, Any] = {}
        elif len(clauses) == 1:
            expression = clauses[0]
        else:
            expression = {"$and" if criteria.connector == criteria.AND else "$or": clauses}

        if criteria.negated and expression:
            expression = {"$nor": [expression]}
        return expression

    def _sort_spec(self, order_by: Sequence[str]) -> list[tuple[str, int]]:
        sort_keys = []
        for key in order_by:
            direction = pymongo.DESCENDING if key.startswith("-") else pymongo.ASCENDING
            sort_keys.append((self.database_model_cls.storage_key(key.lstrip("-")), direction))
        return sort_keys

    def _filter(
        self,
        criteria: Q,
        offset: int = 0,
        limit: int | None = 10,
        order_by: Sequence[str] = (),
        with_total: bool = True,
        fields: Sequence[str] | None = None,
    ) -> ResultSet:
        """Fetch documents matching ``criteria``, returned as raw dicts."""
        selector = self._build_filters(criteria)
        projection = {self.database_model_cls.storage_key(field): 1 for field in fields} if fields else None

        cursor = self.collection.find(selector, projection)
        if order_by:
            cursor = cursor.sort(self._sort_spec(order_by))
        if offset:
            cursor = cursor.skip(offset)
        if limit:
            cursor = cursor.limit(limit)

        items = list(cursor)
        total = self.collection.count_documents(selector) if with_total else len(items)
        return ResultSet(offset=offset, limit=limit, total=total, items=items)

    def _duplicate_key_error(self, exc: DuplicateKeyError) -> ValidationError:
        """Report a unique index violation against the offending fields, when the server names them."""
        key_pattern = (exc.details or {}).get("keyPattern")
        if not key_pattern:
            return ValidationError({"unique": [f"{self.entity_cls.__name__} violates a unique index"]})
        return ValidationError(
            {
                ("id" if key == "_id" else key): [f"{self.entity_cls.__name__} with this {key} already exists"]
                for key in key_pattern
            }
        )

    def _create(self, model_obj: dict[str, Any]) -> dict[str, Any]:
        try:
            self.collection.insert_one(dict(model_obj))
        except DuplicateKeyError as exc:
            raise self._duplicate_key_error(exc) from exc
        return model_obj

    def _update(self, model_obj: dict[str, Any], expected_version: int | None = None) -> dict[str, Any]:
        """Replace the stored document, guarded on the version it was loaded at."""
        identifier = model_obj["_id"]
        selector: dict[str, Any] = {"_id": identifier}
        if expected_version is not None:
            selector["_version"] = expected_version

        try:
            result = self.collection.replace_one(selector, model_obj)
        except DuplicateKeyError as exc:
            raise self._duplicate_key_error(exc) from exc

        if result.matched_count == 0:
            stored = self.collection.find_one({"_id": identifier}, {"_version": 1})
            if stored is None:
                raise ObjectNotFoundError(
                    f"`{self.entity_cls.__name__}` object with identifier {identifier} does not exist."
                )
            raise ExpectedVersionError(
                f"Wrong expected version: {expected_version} "
                f"(Aggregate: {self.entity_cls.__name__}({identifier}), "
                f"Version: {stored.get('_version')})"
            )
        return model_obj

    def _update_all(self, criteria: Q, *args: Any, **kwargs: Any) -> int:
        values: dict[str, Any] = {}
        if args:
            values.update(args[0])
        values.update(kwargs)
        if not values:
            return 0

        changes = {self.database_model_cls.storage_key(key): _document_value(value) for key, value in values.items()}
        result = self.collection.update_many(self._build_filters(criteria), {"$set": changes})
        return result.modified_count

    def _delete(self, model_obj: dict[str, Any]) -> dict[str, Any]:
        result = self.collection.delete_one({"_id": model_obj["_id"]})
        if result.deleted_count == 0:
            raise ObjectNotFoundError(
                f"`{self.entity_cls.__name__}` object with identifier {model_obj['_id']} does not exist."
            )
        return model_obj

    def _delete_all(self, criteria: Q | None = None) -> int:
        selector = self._build_filters(criteria) if criteria else {}
        return self.collection.delete_many(selector).deleted_count

    def _count(self, criteria: Q) -> int:
        return self.collection.count_documents(self._build_filters(criteria))

    def _raw(self, query: Any, data: Any = None) -> ResultSet:
        raise NotSupportedError(f"Provider '{self.provider.name}' does not support raw queries")

    def has_table(self) -> bool:
        return self.schema_name in self.provider.database.list_collection_names()


class MongoProvider(BaseProvider):
    __database__ = "mongodb"

    @property
    def capabilities(self) -> DatabaseCapabilities:
        """Document storage with version-guarded replaces and index management."""
        return DatabaseCapabilities.DOCUMENT_STORE

    def __init__(self, name: str, domain: Any, conn_info: dict[str, Any]) -> None:
        super().__init__(name, domain, conn_info)

        uri = conn_info.get("database_uri") or "mongodb://localhost:27017"
        if uri.startswith(MOCK_SCHEME):
            self._client = mongomock.MongoClient(tz_aware=True)
        else:
            self._client = pymongo.MongoClient(uri, tz_aware=True)
        self.database = self._client[conn_info.get("database") or "storefront"]

        self._database_model_classes: dict[str, type[MongoModel]] = {}

    def get_session(self) -> MongoSession:
        return MongoSession(self)

    def get_connection(self) -> MongoSession:
        return MongoSession(self)

    def is_alive(self) -> bool:
        try:
            self._client.admin.command("ping")
        except PyMongoError:
            logger.exception("MongoDB ping failed")
            return False
        return True

    def close(self) -> None:
        self._client.close()

    def get_dao(self, entity_cls: type[Any], database_model_cls: type[Any]) -> MongoDAO:
        return MongoDAO(self.domain, self, entity_cls, database_model_cls)

    def decorate_database_model_class(self, entity_cls: type[Any], database_model_cls: type[Any]) -> type[Any]:
        cache_key = _fully_qualified_name(entity_cls)
        if cache_key in self._database_model_classes:
            return self._database_model_classes[cache_key]

        if issubclass(database_model_cls, MongoModel):
            return database_model_cls

        custom_attrs = {
            key: value
            for (key, value) in vars(database_model_cls).items()
            if key not in ["Meta", "__module__", "__doc__", "__weakref__"]
        }
        meta_ = Options()
        meta_.part_of = entity_cls
        custom_attrs.update({"meta_": meta_})

        decorated_cls = type(database_model_cls.__name__, (MongoModel, database_model_cls), custom_attrs)
        self._database_model_classes[cache_key] = decorated_cls
        return decorated_cls

    def construct_database_model_class(self, entity_cls: type[Any]) -> type[Any]:
        cache_key = _fully_qualified_name(entity_cls)
        if cache_key not in self._database_model_classes:
            meta_ = Options()
            meta_.part_of = entity_cls
            self._database_model_classes[cache_key] = type(
                entity_cls.__name__ + "Model", (MongoModel,), {"meta_": meta_}
            )
        return self._database_model_classes[cache_key]

    def _raw(self, query: Any, data: Any = None) -> Any:
        raise NotSupportedError(f"Provider '{self.name}' does not support raw queries")

    # -------------------------------------------------------------------
    # Storefront extensions
    # -------------------------------------------------------------------
    def aggregate(self, schema_name: str, pipeline: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Run an aggregation pipeline against a collection."""
        return list(self.database[schema_name].aggregate(pipeline))

    def next_sequence(self, name: str) -> int:
        """Atomically increment and return the named counter (first value is 1)."""
        counter = self.database[COUNTERS].find_one_and_update(
            {"_id": name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return counter["seq"]

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def _owned_elements(self) -> list[type[Any]]:
        return [record.cls for record in self.domain.registry.aggregates.values() if self.owns(record.cls)]

    def _data_reset(self) -> None:
        """Empty every collection. Indexes are kept."""
        for name in self.database.list_collection_names():
            self.database[name].delete_many({})

        # Discard any active Unit of Work
        if current_uow and current_uow.in_progress:
            current_uow.rollback()

    def _create_database_artifacts(self) -> None:
        """Create each aggregate's collection and the indexes it declares. Idempotent."""
        existing = set(self.database.list_collection_names())
        for element_cls in self._owned_elements():
            schema_name = element_cls.meta_.schema_name
            if schema_name not in existing:
                self.database.create_collection(schema_name)

            model_cls = self.domain.repository_for(element_cls)._database_model
            for index in element_cls.meta_.indexes or ():
                keys = [
                    (
                        model_cls.storage_key(field),
                        pymongo.DESCENDING if field in index.desc else pymongo.ASCENDING,
                    )
                    for field in index.fields
                ]
                self.database[schema_name].create_index(
                    keys, unique=index.unique, name=index.resolved_name(schema_name)
                )

    def _drop_database_artifacts(self) -> None:
        for element_cls in self._owned_elements():
            self.database.drop_collection(element_cls.meta_.schema_name)
        self.database.drop_collection(COUNTERS)


class DefaultLookup(BaseLookup):
    """Base lookup: resolves the storage key and builds a single-field clause"""

    def process_source(self) -> str:
        if self.database_model_cls is None:
            return self.source
        return self.database_model_cls.storage_key(self.source)

    def process_target(self) -> Any:
        return _document_value(self.target)

    def clause(self, condition: Any) -> dict[str, Any]:
        return {self.process_source(): condition}


def _pattern(value: Any, prefix: str = "", suffix: str = "") -> str:
    return f"{prefix}{re.escape(str(value))}{suffix}"


@MongoProvider.register_lookup
class Exact(DefaultLookup):
    lookup_name = "exact"

    def as_expression(self) -> dict[str, Any]:
        return self.clause(self.process_target())


@MongoProvider.register_lookup
class IExact(DefaultLookup):
    lookup_name = "iexact"

    def as_expression(self) -> dict[str, Any]:
        return self.clause({"$regex": _pattern(self.target, "^", "$"), "$options": "i"})


@MongoProvider.register_lookup
class Contains(DefaultLookup):
    lookup_name = "contains"

    def as_expression(self) -> dict[str, Any]:
        return self.clause({"$regex": _pattern(self.target)})


@MongoProvider.register_lookup
class IContains(DefaultLookup):
    lookup_name = "icontains"

    def as_expression(self) -> dict[str, Any]:
        return self.clause({"$regex": _pattern(self.target), "$options": "i"})


@MongoProvider.register_lookup
class Startswith(DefaultLookup):
    lookup_name = "startswith"

    def as_expression(self) -> dict[str, Any]:
        return self.clause({"$regex": _pattern(self.target, "^")})


@MongoProvider.register_lookup
class Endswith(DefaultLookup):
    lookup_name = "endswith"

    def as_expression(self) -> dict[str, Any]:
        return self.clause({"$regex": _pattern(self.target, suffix="$")})


@MongoProvider.register_lookup
class GreaterThan(DefaultLookup):
    lookup_name = "gt"

    def as_expression(self) -> dict[str, Any]:
        return self.clause({"$gt": self.process_target()})


@MongoProvider.register_lookup
class GreaterThanOrEqual(DefaultLookup):
    lookup_name = "gte"

    def as_expression(self) -> dict[str, Any]:
        return self.clause({"$gte": self.process_target()})


@MongoProvider.register_lookup
class LessThan(DefaultLookup):
    lookup_name = "lt"

    def as_expression(self) -> dict[str, Any]:
        return self.clause({"$lt": self.process_target()})


@MongoProvider.register_lookup
class LessThanOrEqual(DefaultLookup):
    lookup_name = "lte"

    def as_expression(self) -> dict[str, Any]:
        return self.clause({"$lte": self.process_target()})


@MongoProvider.register_lookup
class In(DefaultLookup):
    """Matches when the field, or any element of an array field, is in the target list"""

    lookup_name = "in"

    def as_expression(self) -> dict[str, Any]:
        return self.clause({"$in": list(self.process_target())})


@MongoProvider.register_lookup
class IsNull(DefaultLookup):
    lookup_name = "isnull"

    def as_expression(self) -> dict[str, Any]:
        return self.clause(None if self.target else {"$ne": None})


def register() -> None:
    registry.register("mongodb", "shared.store.mongo.MongoProvider")
