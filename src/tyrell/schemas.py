import base64
import re
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Literal, TypeVar, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer

T = TypeVar("T", bound=BaseModel)


def freeze(value: Any) -> Any:
    """Recursively turn mappings into read-only proxies and lists into tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of ``freeze``, producing plain JSON-ready dicts and lists."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [thaw(item) for item in value]
    return value


FrozenJson = Annotated[Mapping[str, Any], AfterValidator(freeze), PlainSerializer(thaw)]
FrozenStrMap = Annotated[Mapping[str, str], AfterValidator(freeze), PlainSerializer(thaw)]


class Model(str, Enum):
    """Known model identifiers. Any other non-empty string is accepted as well."""

    SONNET_35 = "claude-3-5-sonnet-20240620"
    OPUS_3 = "claude-3-opus-20240229"
    SONNET_3 = "claude-3-sonnet-20240229"
    HAIKU_3 = "claude-3-haiku-20240307"


class Role(str, Enum):
    """Message author role."""

    USER = "user"
    ASSISTANT = "assistant"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ImageSource(_Frozen):
    type: Literal["base64"] = "base64"
    media_type: str
    data: str


class TextBlock(_Frozen):
    type: Literal["text"] = "text"
    text: str


class ImageBlock(_Frozen):
    type: Literal["image"] = "image"
    source: ImageSource

    @classmethod
    def from_bytes(cls, data: bytes, media_type: str) -> "ImageBlock":
        """Build an inline image block from raw bytes, e.g. the contents of a PNG file."""
        encoded = base64.b64encode(data).decode("ascii")
        return cls(source=ImageSource(media_type=media_type, data=encoded))


class ToolUseBlock(_Frozen):
    """The model asking for a tool to be run with the given input."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: FrozenJson

    # quoted: the `type` field shadows the builtin in the class body
    def parse_input(self, model_cls: "type[T]") -> T:
        """Validate the tool input into ``model_cls``.

        Raises:
            pydantic.ValidationError: If the input does not match the model.
        """
        return model_cls.model_validate(thaw(self.input))


class ToolResultBlock(_Frozen):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str
    is_error: bool | None = None


ContentBlock = Annotated[
    Union[TextBlock, ImageBlock, ToolUseBlock, ToolResultBlock],
    Field(discriminator="type"),
]


class Message(_Frozen):
    """One conversation turn.

    Attributes:
        role: Message author role.
        content: Ordered content blocks of the turn.
    """

    role: Role
    content: tuple[ContentBlock, ...] = Field(min_length=1)


class InputSchema(_Frozen):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["object"] = "object"
    properties: FrozenJson
    required: tuple[str, ...] = ()
    defs: FrozenJson | None = Field(default=None, alias="$defs")


def _snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


class Tool(_Frozen):
    """A tool definition the model may call."""

    name: str
    description: str | None = None
    input_schema: InputSchema

    @classmethod
    def from_model(cls, model_cls: type[BaseModel], name: str | None = None, description: str | None = None) -> "Tool":
        """Derive a tool definition from a pydantic model.

        Args:
            model_cls: Model describing the tool input.
            name: Tool name. Defaults to the snake_case class name.
            description: Tool description. Defaults to the class docstring.

        Returns:
            Tool whose input schema is the model's JSON schema.
        """
        schema = model_cls.model_json_schema()
        payload = {"properties": schema.get("properties", {}), "required": schema.get("required", [])}
        if "$defs" in schema:
            payload["$defs"] = schema["$defs"]
        input_schema = InputSchema.model_validate(payload)
        if description is None and model_cls.__doc__:
            description = model_cls.__doc__.strip()
        return cls(name=name or _snake_case(model_cls.__name__), description=description, input_schema=input_schema)


class ToolChoiceAuto(_Frozen):
    type: Literal["auto"] = "auto"
    disable_parallel_tool_use: bool | None = None


class ToolChoiceAny(_Frozen):
    type: Literal["any"] = "any"
    disable_parallel_tool_use: bool | None = None


class ToolChoiceTool(_Frozen):
    type: Literal["tool"] = "tool"
    name: str
    disable_parallel_tool_use: bool | None = None


class ToolChoiceNone(_Frozen):
    type: Literal["none"] = "none"


ToolChoice = Annotated[
    Union[ToolChoiceAuto, ToolChoiceAny, ToolChoiceTool, ToolChoiceNone],
    Field(discriminator="type"),
]


class Usage(BaseModel):
    input_tokens: int
    output_tokens: int


class ChatResponse(BaseModel):
    """Parsed reply of the messages endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: str
    type: Literal["message"] = "message"
    role: Role
    content: list[ContentBlock]
    model: str
    # end_turn, max_tokens, stop_sequence, tool_use, or whatever newer servers send
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: Usage

    @property
    def text_blocks(self) -> list[TextBlock]:
        return [block for block in self.content if isinstance(block, TextBlock)]

    @property
    def text(self) -> str:
        """Generated text, with text blocks joined by newlines."""
        return "\n".join(block.text for block in self.text_blocks)

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        return [block for block in self.content if isinstance(block, ToolUseBlock)]
