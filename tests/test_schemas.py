from typing import get_origin, get_type_hints

import pytest
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tyrell import ChatResponse, Model, Role, TextBlock, Tool, ToolUseBlock

from .conftest import message_reply


class SuperBowl(BaseModel):
    """Extract Super Bowl information from text"""

    year: int
    winner: str
    loser: str
    winner_score: int
    loser_score: int
    total_points_scored: int | None = None


class Address(BaseModel):
    city: str


class Person(BaseModel):
    name: str
    address: Address


def test_model_identifiers():
    assert Model.OPUS_3.value == "claude-3-opus-20240229"
    assert Model("claude-3-5-sonnet-20240620") is Model.SONNET_35


class TestChatResponse:
    def test_parse_text_reply(self):
        response = ChatResponse.model_validate(message_reply("Abraham Lincoln."))
        assert response.role == Role.ASSISTANT
        assert response.text == "Abraham Lincoln."
        assert response.stop_reason == "end_turn"
        assert response.usage.output_tokens == 17
        assert response.tool_uses == []

    def test_text_joins_text_blocks(self):
        reply = message_reply()
        reply["content"] = [
            {"type": "text", "text": "first"},
            {"type": "tool_use", "id": "toolu_1", "name": "lookup", "input": {}},
            {"type": "text", "text": "second"},
        ]
        response = ChatResponse.model_validate(reply)
        assert response.text == "first\nsecond"
        assert response.text_blocks == [TextBlock(text="first"), TextBlock(text="second")]

    def test_unknown_fields_are_ignored(self):
        reply = message_reply()
        reply["container"] = None
        assert ChatResponse.model_validate(reply).id == reply["id"]

    def test_newer_stop_reasons_are_accepted(self):
        reply = message_reply()
        reply["stop_reason"] = "refusal"
        assert ChatResponse.model_validate(reply).stop_reason == "refusal"

    def test_unknown_block_type_is_rejected(self):
        reply = message_reply()
        reply["content"] = [{"type": "hologram", "data": "?"}]
        with pytest.raises(PydanticValidationError):
            ChatResponse.model_validate(reply)

    def test_tool_use_input_parses_into_model(self):
        reply = message_reply()
        reply["stop_reason"] = "tool_use"
        reply["content"] = [
            {
                "type": "tool_use",
                "id": "toolu_01CQ1Yq17jrrMpF5uiAMt4bU",
                "name": "extract_super_bowl_info",
                "input": {
                    "winner": "Green Bay Packers",
                    "winner_score": 31,
                    "loser": "Miami Dolphins",
                    "loser_score": 10,
                    "year": 1982,
                },
            }
        ]
        response = ChatResponse.model_validate(reply)
        [tool_use] = response.tool_uses
        assert isinstance(tool_use, ToolUseBlock)
        with pytest.raises(TypeError):
            tool_use.input["winner"] = "Miami Dolphins"
        info = tool_use.parse_input(SuperBowl)
        assert info.winner == "Green Bay Packers"
        assert info.total_points_scored is None


def test_parse_input_accepts_a_model_class():
    hints = get_type_hints(ToolUseBlock.parse_input)
    assert get_origin(hints["model_cls"]) is type


class TestTool:
    def test_from_model_defaults(self):
        tool = Tool.from_model(SuperBowl)
        assert tool.name == "super_bowl"
        assert tool.description == "Extract Super Bowl information from text"
        assert tool.input_schema.type == "object"
        assert set(tool.input_schema.properties) == {
            "year",
            "winner",
            "loser",
            "winner_score",
            "loser_score",
            "total_points_scored",
        }
        assert tool.input_schema.required == ("year", "winner", "loser", "winner_score", "loser_score")

    def test_from_model_overrides(self):
        tool = Tool.from_model(SuperBowl, name="extract_super_bowl_info", description="Extract it")
        assert tool.name == "extract_super_bowl_info"
        assert tool.description == "Extract it"

    def test_model_without_docstring_has_no_description(self):
        assert Tool.from_model(Address).description is None

    def test_nested_models_keep_definitions(self):
        schema = Tool.from_model(Person).input_schema.model_dump(by_alias=True)
        assert "Address" in schema["$defs"]
        assert schema["properties"]["address"] == {"$ref": "#/$defs/Address"}
