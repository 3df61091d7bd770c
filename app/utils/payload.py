"""Type checks for JSON request payloads."""
from app.exceptions import BusinessLogicError


def require_object(data, field: str = 'body') -> dict:
    """Return ``data`` if it is a JSON object; None counts as empty."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BusinessLogicError(f'{field}: debe ser un objeto JSON', payload={'field': field})
    return data


def text_field(data: dict, key: str, field: str = None) -> str:
    """Stripped string value of ``data[key]`` ('' when missing or null); non-strings raise BusinessLogicError."""
    value = data.get(key)
    if value is None:
        return ''
    if not isinstance(value, str):
        name = field or key
        raise BusinessLogicError(f'{name}: debe ser texto', payload={'field': name})
    return str(value).strip()
