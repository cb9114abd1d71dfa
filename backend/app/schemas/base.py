"""
Base schemas with standardized field types for consistent API responses.

Wire format is camelCase (``tripId``, ``hasNextPage``); Python attributes
stay snake_case. Requests accept either spelling.
"""
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from pydantic_core import core_schema


class StandardizedModel(BaseModel):
    """Base model for response DTOs with standardized JSON encoding."""

    model_config = ConfigDict(
        use_enum_values=True,
        populate_by_name=True,
        alias_generator=to_camel,
        from_attributes=True,
    )


class StrictRequestModel(BaseModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )


class Money(Decimal):
    """Money field that always serializes as float"""

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def validate_money(value: Any) -> Decimal:
            if isinstance(value, bool):
                raise ValueError("Cannot convert bool to Money")
            if isinstance(value, (int, float)):
                return cls(str(value))
            if isinstance(value, str):
                try:
                    return cls(value.strip())
                except InvalidOperation:
                    raise ValueError(f"Invalid amount: {value!r}")
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
