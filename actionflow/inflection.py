"""
Small string and presence helpers: singularize, underscore, humanize, blank/present.
"""
import re
from typing import Any

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def underscore(name: str) -> str:
    """CamelCase / dashed -> snake_case."""
    return _CAMEL_BOUNDARY.sub("_", name).replace("-", "_").replace("::", "_").replace(".", "_").lower()


def singularize(word: str) -> str:
    if not word:
        return word
    lower = word.lower()
    if lower.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if lower.endswith(("sses", "shes", "ches", "xes", "zes")):
        return word[:-2]
    if lower.endswith("ss"):
        return word
    if lower.endswith("s"):
        return word[:-1]
    return word


def humanize(key: str) -> str:
    """first_name -> First name; trailing _id is dropped like ActiveSupport."""
    text = str(key)
    if text.endswith("_id"):
        text = text[:-3]
    text = text.replace("_", " ").strip()
    return text[:1].upper() + text[1:]


def dasherize(key: str) -> str:
    return str(key).replace("_", "-")


def is_blank(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return len(value) == 0
    except TypeError:
        return False


def is_present(value: Any) -> bool:
    return not is_blank(value)
