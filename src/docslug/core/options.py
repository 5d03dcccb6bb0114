"""Per-model slug configuration: source fields, scope, reserved words and policy"""

from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from docslug.core.errors import ConfigurationError


INDEX_KEY_LIMIT_BYTES = 1024
DEFAULT_MAX_LENGTH = INDEX_KEY_LIMIT_BYTES - 32
DEFAULT_RESERVED_WORDS = frozenset({"new", "edit"})

_OPTIONS = {"scope", "reserve", "history", "permanent", "by_model_type", "max_length", "type_field", "builder"}


class SlugPolicy(str, Enum):
    """When a document's slug may be (re)computed"""
    permanent = "permanent"       # once, on create
    rebuildable = "rebuildable"   # on every save that touches slug-affecting fields


class SlugConfig(BaseModel):
    """Immutable slug settings shared by every document of one model class"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    source_fields: tuple[str, ...] = ()
    scope: Optional[str] = Field(default=None, description="Sibling column or relationship scoping uniqueness")
    reserved_words: frozenset[str] = DEFAULT_RESERVED_WORDS
    max_length: Optional[int] = Field(default=DEFAULT_MAX_LENGTH, gt=0, description="None disables truncation")
    history: bool = False
    by_model_type: bool = False
    type_field: str = "doc_type"
    policy: SlugPolicy = SlugPolicy.rebuildable
    custom_builder: Optional[Callable[[Any], str]] = None

    @field_validator("source_fields")
    @classmethod
    def _names(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if any(not isinstance(f, str) or not f.strip() for f in v):
            raise ValueError("source field names must be non-empty strings")
        return v

    @property
    def permanent(self) -> bool:
        return self.policy is SlugPolicy.permanent


def slug_config(*fields: str, **options: Any) -> SlugConfig:
    """Build a SlugConfig from source field names and keyword options.

    Accepted options: scope, reserve, history, permanent, by_model_type,
    max_length, type_field, builder. Only the shape of the arguments is
    checked here; whether the fields exist is checked when a slug is built.
    Raises ConfigurationError on malformed input.
    """
    unknown = set(options) - _OPTIONS
    if unknown:
        raise ConfigurationError(f"Unknown slug option(s): {', '.join(sorted(unknown))}")

    builder = options.get("builder")
    if builder is not None and not callable(builder):
        raise ConfigurationError("builder must be callable")
    if not fields and builder is None:
        raise ConfigurationError("slug_config needs at least one source field or a builder")

    data: dict[str, Any] = {
        "source_fields": tuple(fields),
        "scope": options.get("scope"),
        "history": bool(options.get("history", False)),
        "by_model_type": bool(options.get("by_model_type", False)),
        "policy": SlugPolicy.permanent if options.get("permanent") else SlugPolicy.rebuildable,
        "custom_builder": builder,
    }
    if "reserve" in options:
        reserve = options["reserve"]
        if isinstance(reserve, str):
            raise ConfigurationError("reserve must be a collection of words, not a string")
        data["reserved_words"] = frozenset(reserve or ())
    if "max_length" in options:
        data["max_length"] = options["max_length"]
    if "type_field" in options:
        data["type_field"] = options["type_field"]

    try:
        return SlugConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid slug configuration: {e}") from e
