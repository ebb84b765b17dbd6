"""
Base schemas with standardized field types for consistent API responses.
"""
from decimal import Decimal
import re
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic_core import core_schema

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class StandardizedModel(BaseModel):
    """Base model with standardized JSON encoding"""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True, from_attributes=True)


class Money(Decimal):
    """Money field that always serializes as float"""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def validate_money(value: Any) -> Decimal:
            if isinstance(value, (int, float)):
                return cls(str(value))
            if isinstance(value, str):
                return cls(value)
            if isinstance(value, Decimal):
                return value
            raise ValueError(f"Cannot convert {type(value)} to Money")

        return core_schema.no_info_after_validator_function(
            validate_money,
            core_schema.union_schema(
                [
                    core_schema.int_schema(),
                    core_schema.float_schema(),
                    core_schema.str_schema(),
                    core_schema.is_instance_schema(Decimal),
                ]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(
                float,
                info_arg=False,
                return_schema=core_schema.float_schema(),
            ),
        )


def validate_hhmm(value: Any) -> Any:
    """Accept "HH:MM" 24-hour strings only."""
    if isinstance(value, str) and TIME_PATTERN.match(value.strip()):
        return value.strip()
    raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")


def split_csv(value: Any) -> Optional[List[str]]:
    """Accept a list or a comma-separated string; drop blank entries."""
    if value is None:
        return value
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    raise ValueError("Expected a list or a comma-separated string")
