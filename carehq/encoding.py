"""
Parameter encoding for CareHQ API requests.

Two encodings are produced from the same parameters: the query/form
encoding sent over the wire, and the canonical string used only as
signing input.
"""

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote_plus

from .exceptions import EncodingError

ParamValue = Union[str, List[str]]
Params = Mapping[str, Any]

_SCALAR_TYPES = (str, int, float, Decimal)


def ensure_string(value: Any) -> ParamValue:
    """
    Ensure a value that will be form-encoded is a string (or list of strings).

    Raises:
        EncodingError: If the value (or one of its elements) is not a
            supported scalar type
    """
    if isinstance(value, (list, tuple)):
        return [_scalar_to_string(v) for v in value]
    return _scalar_to_string(value)


def _scalar_to_string(value: Any) -> str:
    # Booleans are sent as "1" and "" to match what the API expects
    if isinstance(value, bool):
        return '1' if value else ''
    if isinstance(value, _SCALAR_TYPES):
        return str(value)
    raise EncodingError(
        f"Unsupported parameter value type: {type(value).__name__}"
    )


def clean_params(params: Optional[Params]) -> Dict[str, ParamValue]:
    """Drop None values and coerce the rest to strings, keeping key order."""
    if not params:
        return {}
    return {
        str(key): ensure_string(value)
        for key, value in params.items()
        if value is not None
    }


def _pairs(params: Params) -> List[Tuple[str, str]]:
    pairs = []
    for key, value in params.items():
        if isinstance(value, list):
            pairs.extend((key, v) for v in value)
        else:
            pairs.append((key, value))
    return pairs


def build_query(params: Params) -> str:
    """
    Encode parameters as a query string or form body.

    Lists are sent as repeated pairs (``id=1&id=2``) rather than the
    bracketed ``id[]=1`` form.
    """
    return '&'.join(
        f"{quote_plus(key)}={quote_plus(value)}"
        for key, value in _pairs(clean_params(params))
    )


def canonical_params(params: Optional[Params]) -> str:
    """
    Build the canonical form of a parameter mapping used as signing input.

    Keys are sorted, and each key's values are sorted, so the result does
    not depend on insertion order or list order. One ``key=value`` line is
    emitted per value. Nothing is URL-encoded.

    Args:
        params: Parameters chosen for signing

    Returns:
        Newline-joined ``key=value`` lines, or an empty string if there
        are no parameters

    Raises:
        EncodingError: If a value is of an unsupported type
    """
    cleaned = clean_params(params)
    if not cleaned:
        return ''

    # Code point order of str matches byte order of its UTF-8 encoding
    lines = []
    for key in sorted(cleaned):
        value = cleaned[key]
        values = value if isinstance(value, list) else [value]
        lines.extend(f"{key}={v}" for v in sorted(values))

    return '\n'.join(lines)
