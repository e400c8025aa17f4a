"""Request models for save, publish and game creation, validated before any store I/O."""

from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictStr
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .paths import Channel, is_valid_slug

GameMode = Literal["single", "head2head", "multi"]


def _check_slug(value: str) -> str:
    if not is_valid_slug(value):
        raise ValueError(
            "use lowercase letters, digits and '-', or an empty slug for the legacy root"
        )
    return value


Slug = Annotated[StrictStr, AfterValidator(_check_slug)]


class SaveRequest(BaseModel):
    """Write config and/or missions for one game channel.

    `slug` must be present; "" or a legacy token selects the legacy root.
    Documents left out (or null) are not written.
    """

    model_config = ConfigDict(extra="forbid")

    slug: Slug
    config: Any = None
    missions: Any = None
    channel: Channel = "published"


class PublishRequest(BaseModel):
    """Copy the current draft (or fallback) content of a game to published."""

    model_config = ConfigDict(extra="forbid")

    slug: Slug


class CreateGameRequest(BaseModel):
    """Seed a new game. The slug is derived from `slug` or, if absent, `title`."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    title: StrictStr = Field(min_length=1)
    type: StrictStr = "Mystery"
    mode: GameMode = "single"
    slug: StrictStr | None = None
    short_description: StrictStr = Field("", alias="shortDescription")
    long_description: StrictStr = Field("", alias="longDescription")
    cover_image: StrictStr = Field("", alias="coverImage")


def _describe(error: dict[str, Any]) -> str:
    field = ".".join(str(part) for part in error.get("loc", ())) or "body"
    if error.get("type") == "missing":
        return f"Missing {field}"
    if error.get("type") == "extra_forbidden":
        return f"Unknown field {field}"
    return f"Invalid {field}: {error.get('msg', 'invalid value')}"


def parse_request(model: type[BaseModel], body: Any) -> Any:
    """Validate a decoded JSON body into `model`, raising ValidationError."""
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(body)
    except PydanticValidationError as e:
        messages = [_describe(err) for err in e.errors()]
        raise ValidationError("; ".join(messages), fields=messages) from e
