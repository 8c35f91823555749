"""Fluent request builder and the immutable request it produces."""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from tyrell.errors import ValidationError
from tyrell.schemas import (
    ContentBlock,
    FrozenStrMap,
    ImageBlock,
    Message,
    Model,
    Role,
    TextBlock,
    Tool,
    ToolChoice,
    ToolChoiceTool,
    ToolResultBlock,
    ToolUseBlock,
)

if TYPE_CHECKING:
    from tyrell.main import AsyncClient, Client
    from tyrell.schemas import ChatResponse

_BLOCK_TYPES = (TextBlock, ImageBlock, ToolUseBlock, ToolResultBlock)


class ChatRequest(BaseModel):
    """A validated chat request. Instances are created by ``RequestBuilder.build``."""

    model_config = ConfigDict(frozen=True)

    model: str = Field(min_length=1)
    messages: tuple[Message, ...] = Field(min_length=1)
    max_tokens: int = Field(gt=0, strict=True)
    system: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=1.0)
    top_k: int | None = Field(default=None, gt=0, strict=True)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    stop_sequences: tuple[str, ...] | None = None
    metadata: FrozenStrMap | None = None
    tools: tuple[Tool, ...] | None = None
    tool_choice: ToolChoice | None = None

    @field_validator("model", mode="after")
    @classmethod
    def check_model_identifier(cls, model: str) -> str:
        if not model.strip():
            raise ValueError("model must be a non-empty string")
        return model

    @classmethod
    def builder(cls) -> "RequestBuilder":
        return RequestBuilder()

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready request body, leaving out unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True, by_alias=True)

    def call(self, client: "Client | None" = None) -> "ChatResponse":
        """Submit this request through ``client``, or a client built from the global config."""
        from tyrell.main import Client

        return (client or Client()).submit(self)

    async def acall(self, client: "AsyncClient | None" = None) -> "ChatResponse":
        """Async counterpart of ``call``."""
        from tyrell.main import AsyncClient

        return await (client or AsyncClient()).submit(self)


def _is_number(value: Any, kinds: type | tuple[type, ...] = (int, float)) -> bool:
    return isinstance(value, kinds) and not isinstance(value, bool)


def _coerce_content(content: Any) -> tuple[list[ContentBlock], str | None]:
    if isinstance(content, str):
        content = [content]
    if isinstance(content, Mapping) or not isinstance(content, Sequence):
        return [], f"content must be a sequence of content blocks, got {type(content).__name__}"

    blocks: list[ContentBlock] = []
    for item in content:
        if isinstance(item, str):
            blocks.append(TextBlock(text=item))
        elif isinstance(item, _BLOCK_TYPES):
            blocks.append(item)
        else:
            return [], f"unsupported content block {type(item).__name__}"

    if not blocks:
        return [], "content must not be empty"
    return blocks, None


class RequestBuilder:
    """Mutable accumulator for a chat request.

    Every setter records its value and returns the builder, so calls chain.
    Nothing is checked until ``build``; an invalid builder therefore never
    reaches the network.

    Example:
        request = (
            ChatRequest.builder()
            .model(Model.OPUS_3)
            .add_message(Role.USER, [TextBlock(text="Hello")])
            .max_tokens(200)
            .build()
        )
    """

    def __init__(self):
        self._model: Model | str | None = None
        self._messages: list[tuple[Any, Any]] = []
        self._max_tokens: Any = None
        self._system: str | None = None
        self._temperature: float | None = None
        self._top_k: int | None = None
        self._top_p: float | None = None
        self._stop_sequences: Sequence[str] | None = None
        self._metadata: Mapping[str, str] | None = None
        self._tools: Sequence[Tool] | None = None
        self._tool_choice: Any = None

    def model(self, model: Model | str) -> "RequestBuilder":
        self._model = model
        return self

    def add_message(self, role: Role | str, content: Sequence[ContentBlock | str] | str) -> "RequestBuilder":
        """Append a conversation turn. A bare string is shorthand for one text block."""
        if isinstance(content, Sequence) and not isinstance(content, str):
            content = tuple(content)
        self._messages.append((role, content))
        return self

    def max_tokens(self, max_tokens: int) -> "RequestBuilder":
        self._max_tokens = max_tokens
        return self

    def system(self, system: str) -> "RequestBuilder":
        self._system = system
        return self

    def temperature(self, temperature: float) -> "RequestBuilder":
        self._temperature = temperature
        return self

    def top_k(self, top_k: int) -> "RequestBuilder":
        self._top_k = top_k
        return self

    def top_p(self, top_p: float) -> "RequestBuilder":
        self._top_p = top_p
        return self

    def stop_sequences(self, stop_sequences: Sequence[str]) -> "RequestBuilder":
        self._stop_sequences = stop_sequences
        return self

    def metadata(self, metadata: Mapping[str, str]) -> "RequestBuilder":
        self._metadata = metadata
        return self

    def tools(self, tools: Sequence[Tool]) -> "RequestBuilder":
        self._tools = tools
        return self

    def tool_choice(self, tool_choice: ToolChoice) -> "RequestBuilder":
        self._tool_choice = tool_choice
        return self

    def _build_messages(self, problems: dict[str, str]) -> list[Message]:
        if not self._messages:
            problems["messages"] = "at least one message is required"
            return []

        messages = []
        for index, (role, content) in enumerate(self._messages):
            try:
                role = Role(role)
            except ValueError:
                problems[f"messages[{index}].role"] = f"unknown role {role!r}"
                continue

            blocks, reason = _coerce_content(content)
            if reason is not None:
                problems[f"messages[{index}].content"] = reason
                continue
            messages.append(Message(role=role, content=tuple(blocks)))
        return messages

    def _check(self, problems: dict[str, str]) -> None:
        model = self._model.value if isinstance(self._model, Model) else self._model
        if model is None:
            problems["model"] = "model must be specified"
        elif not isinstance(model, str) or not model.strip():
            problems["model"] = "model must be a non-empty string"

        if self._max_tokens is None:
            problems["max_tokens"] = "max_tokens must be specified"
        elif not _is_number(self._max_tokens, int) or self._max_tokens <= 0:
            problems["max_tokens"] = f"max_tokens must be a positive integer, got {self._max_tokens!r}"

        for name, value in (("temperature", self._temperature), ("top_p", self._top_p)):
            if value is not None and (not _is_number(value) or not 0.0 <= value <= 1.0):
                problems[name] = f"{name} must be between 0 and 1, got {value!r}"
        if self._top_k is not None and (not _is_number(self._top_k, int) or self._top_k <= 0):
            problems["top_k"] = f"top_k must be a positive integer, got {self._top_k!r}"

        if isinstance(self._tool_choice, ToolChoiceTool):
            tool_names = {tool.name for tool in self._tools or ()}
            if self._tool_choice.name not in tool_names:
                problems["tool_choice"] = f"tool {self._tool_choice.name!r} is not among the configured tools"

    def build(self) -> ChatRequest:
        """Validate the accumulated fields into an immutable ``ChatRequest``.

        The builder is left untouched, so building twice yields equal requests.

        Raises:
            ValidationError: Naming every missing or invalid field.
        """
        problems: dict[str, str] = {}
        self._check(problems)
        messages = self._build_messages(problems)
        if problems:
            raise ValidationError(problems)

        model = self._model.value if isinstance(self._model, Model) else self._model
        try:
            return ChatRequest(
                model=model,
                messages=tuple(messages),
                max_tokens=self._max_tokens,
                system=self._system,
                temperature=self._temperature,
                top_k=self._top_k,
                top_p=self._top_p,
                stop_sequences=tuple(self._stop_sequences) if self._stop_sequences is not None else None,
                metadata=dict(self._metadata) if self._metadata is not None else None,
                tools=tuple(self._tools) if self._tools is not None else None,
                tool_choice=self._tool_choice,
            )
        except pydantic.ValidationError as exc:
            raise ValidationError(
                {".".join(str(part) for part in error["loc"]): error["msg"] for error in exc.errors()}
            ) from exc
