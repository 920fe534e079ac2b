"""
Operation definitions.

An Operation is a named, parameterized read query the router can call
instead of generating SQL. Parameters carry their declared type and coerce
model-extracted values into it.
"""

import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

ParameterType = Literal["string", "number", "boolean"]
ParameterValue = str | int | float | bool

_TRUE_WORDS = {"true", "yes", "y", "1", "on"}
_FALSE_WORDS = {"false", "no", "n", "0", "off"}


class Parameter(BaseModel):
    """Declared input of an operation."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ParameterType
    required: bool = False
    description: str = ""
    default: ParameterValue | None = None

    @model_validator(mode="after")
    def validate_default(self) -> "Parameter":
        if self.default is not None:
            self.coerce(self.default)
        return self

    def coerce(self, value: Any) -> ParameterValue | None:
        """
        Convert a raw value to this parameter's type.

        Returns None for missing or blank input.

        Raises:
            ValueError: If the value cannot represent the declared type
        """
        if value is None:
            return None

        if self.type == "number":
            if isinstance(value, bool):
                raise ValueError(f"{self.name}: boolean is not a number")
            if isinstance(value, (int, float)):
                number = value
            else:
                text = str(value).strip().replace(",", "").lstrip("$")
                if not text:
                    return None
                number = float(text)
            if isinstance(number, float):
                if not math.isfinite(number):
                    raise ValueError(f"{self.name}: {value!r} is not a finite number")
                if number.is_integer():
                    return int(number)
            return number

        if self.type == "boolean":
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if not text:
                return None
            if text in _TRUE_WORDS:
                return True
            if text in _FALSE_WORDS:
                return False
            raise ValueError(f"{self.name}: {value!r} is not a boolean")

        text = str(value).strip()
        return text or None


class Operation(BaseModel):
    """Catalog entry: a predefined query exposed to the router."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    description: str
    category: str
    parameters: tuple[Parameter, ...] = ()
    examples: tuple[str, ...] = ()

    def parameter(self, name: str) -> Parameter | None:
        return next((p for p in self.parameters if p.name == name), None)

    def missing_required(self, values: dict[str, Any]) -> list[Parameter]:
        """Required parameters with neither a value nor a default."""
        return [
            p
            for p in self.parameters
            if p.required and values.get(p.name) is None and p.default is None
        ]

    def signature(self) -> str:
        """Compact form used in prompts and the CLI, e.g. `getTotalSales(startDate?, endDate?)`."""
        parts = []
        for p in self.parameters:
            if p.required:
                parts.append(f"{p.name}*")
            elif p.default is not None:
                parts.append(f"{p.name}={p.default}")
            else:
                parts.append(f"{p.name}?")
        return f"{self.name}({', '.join(parts)})"
