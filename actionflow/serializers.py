"""
Turning resources into JSON/CSV/XML-friendly data.
to_serializable() handles to_dict(), pydantic models, dataclasses, SQLAlchemy mapped
objects and plain values; Serializer is the declarative per-resource variant.
"""
import dataclasses
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple, Type

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import NoInspectionAvailable


def mapped_columns(obj: Any) -> Optional[Dict[str, Any]]:
    """Column attributes of a SQLAlchemy mapped instance, or None for anything else."""
    if isinstance(obj, type):
        return None
    try:
        state = sa_inspect(obj)
    except NoInspectionAvailable:
        return None
    mapper = getattr(state, "mapper", None)
    if mapper is None or not hasattr(state, "attrs"):
        return None
    return {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}


def to_record(obj: Any) -> Any:
    """One level of conversion into a dict (or leave scalars alone)."""
    if obj is None or isinstance(obj, (str, int, float, bool, Decimal, date, datetime, Enum)):
        return obj
    if isinstance(obj, Mapping):
        return dict(obj)
    to_dict = getattr(obj, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    columns = mapped_columns(obj)
    if columns is not None:
        return columns
    return obj


def to_serializable(obj: Any) -> Any:
    """Recursively convert into JSON-compatible data."""
    record = to_record(obj)
    if isinstance(record, Mapping):
        return {str(k): to_serializable(v) for k, v in record.items()}
    if isinstance(record, Iterable) and not isinstance(record, (str, bytes)):
        return [to_serializable(v) for v in record]
    if isinstance(record, BaseException):
        return str(record)
    return jsonable_encoder(record)


class Serializer:
    """
    Declarative serializer:

        class UserSerializer(Serializer):
            attributes = ("id", "name")
            methods = ("display_name",)          # self.display_name(resource)
            associations = {"posts": PostSerializer}
    """

    attributes: ClassVar[Tuple[str, ...]] = ()
    methods: ClassVar[Tuple[str, ...]] = ()
    associations: ClassVar[Dict[str, Type["Serializer"]]] = {}

    def serialize(self, resource: Any) -> Any:
        if resource is None:
            return None
        if isinstance(resource, Iterable) and not isinstance(resource, (str, bytes, Mapping)):
            return [self.serialize_resource(item) for item in resource]
        return self.serialize_resource(resource)

    def serialize_resource(self, resource: Any) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for name in self.attributes:
            out[name] = to_serializable(_read(resource, name))
        for name in self.methods:
            out[name] = to_serializable(getattr(self, name)(resource))
        for name, serializer_class in self.associations.items():
            out[name] = serializer_class().serialize(_read(resource, name))
        return out


def _read(resource: Any, name: str) -> Any:
    if isinstance(resource, Mapping):
        return resource.get(name)
    return getattr(resource, name, None)
