"""Public SDK exports for tyrell."""

from . import main
from .builder import ChatRequest, RequestBuilder
from .config import FrozenSDKSettings, SDKSettings, get_sdk_config, settings
from .errors import ProtocolError, RemoteError, TransportError, TyrellError, ValidationError
from .main import AsyncClient, Client
from .schemas import (
    ChatResponse,
    ContentBlock,
    ImageBlock,
    ImageSource,
    InputSchema,
    Message,
    Model,
    Role,
    TextBlock,
    Tool,
    ToolChoice,
    ToolChoiceAny,
    ToolChoiceAuto,
    ToolChoiceNone,
    ToolChoiceTool,
    ToolResultBlock,
    ToolUseBlock,
    Usage,
)

__version__ = "0.1.0"
