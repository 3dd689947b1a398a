from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API payloads, serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class StandardError(BaseModel):
    detail: str = Field(description="Human-readable error message")


class ValidationProblem(BaseModel):
    error: str = Field(default="validation_error", description="Error code")
    message: str = Field(description="Human-readable error message")
    fields: dict[str, list[str]] = Field(description="Messages keyed by field name")
