import logging
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)

_SIMPLE_DEFAULTS = {str: "", int: 0, float: 0.0, bool: False}


class CustomBaseModel(BaseModel):
    """Custom base model for response schemas.
    - coerce simple scalar values to the declared type before init
    - fall back to the field default (or a zero value) when the value is missing or invalid
    """

    def __init__(self, **data: Any) -> None:
        fields = self.__class__.model_fields
        for attr, value in data.items():
            field = fields.get(attr)
            if field is None or field.annotation not in _SIMPLE_DEFAULTS:
                continue
            attr_type = field.annotation
            if value is not None and isinstance(value, attr_type):
                continue
            try:  # try to convert the value to the type of the attribute
                if value is None:
                    raise ValueError(attr)
                data[attr] = attr_type(value)
            except (TypeError, ValueError):
                logger.debug("Invalid value for key: %s, using default", attr)
                if field.is_required():
                    data[attr] = _SIMPLE_DEFAULTS[attr_type]
                else:
                    data[attr] = field.get_default(call_default_factory=True)
        super().__init__(**data)
