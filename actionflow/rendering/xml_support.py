"""
XML rendering in the ActiveSupport to_xml shape:
mappings under <hash>, lists under <objects type="array">, dasherized keys, type attributes.
"""
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from xml.etree import ElementTree as ET

from starlette.responses import Response

from actionflow.inflection import dasherize, singularize
from actionflow.serializers import to_record

XML_MEDIA_TYPE = "application/xml"
_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'


def _type_attr(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, (float, Decimal)):
        return "float"
    if isinstance(value, datetime):
        return "dateTime"
    if isinstance(value, date):
        return "date"
    return None


def _fill(element: ET.Element, value: Any) -> None:
    value = to_record(value)
    if isinstance(value, Enum):
        value = value.value
    if value is None:
        element.set("nil", "true")
    elif isinstance(value, Mapping):
        for key, child in value.items():
            _fill(ET.SubElement(element, dasherize(key)), child)
    elif isinstance(value, (list, tuple)):
        element.set("type", "array")
        child_tag = singularize(element.tag)
        if child_tag == element.tag:
            child_tag = "object"
        for item in value:
            _fill(ET.SubElement(element, child_tag), item)
    else:
        type_name = _type_attr(value)
        if type_name:
            element.set("type", type_name)
        if isinstance(value, bool):
            element.text = "true" if value else "false"
        elif isinstance(value, (date, datetime)):
            element.text = value.isoformat()
        else:
            element.text = str(value)


def to_xml(data: Any, root: Optional[str] = None) -> str:
    """Serialize resources, mappings and lists; root defaults to hash / objects."""
    data = to_record(data)
    if not isinstance(data, (Mapping, list, tuple)) and hasattr(data, "__iter__") and not isinstance(data, (str, bytes)):
        data = list(data)
    if root is None:
        root = "objects" if isinstance(data, (list, tuple)) else "hash"
    element = ET.Element(dasherize(root))
    _fill(element, data)
    return _DECLARATION + ET.tostring(element, encoding="unicode")


def xml_response(data: Any, status_code: int = 200, root: Optional[str] = None) -> Response:
    return Response(content=to_xml(data, root), status_code=status_code, media_type=XML_MEDIA_TYPE)
