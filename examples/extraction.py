from pydantic import BaseModel

from tyrell import ChatRequest, Client, Model, Role, Tool, ToolChoiceTool


class SuperBowl(BaseModel):
    """Extract Super Bowl information from text"""

    year: int
    winner: str
    loser: str
    winner_score: int
    loser_score: int
    total_points_scored: int | None = None


tool = Tool.from_model(SuperBowl, name="extract_super_bowl_info")

request = (
    ChatRequest.builder()
    .model(Model.SONNET_35)
    .system("You are an NFL historian. Extract the information from the text.")
    .add_message(Role.USER, "The Green Bay Packers beat the Miami Dolphins in the 1982 Super Bowl 31-10.")
    .max_tokens(200)
    .tools([tool])
    .tool_choice(ToolChoiceTool(name=tool.name, disable_parallel_tool_use=False))
    .build()
)

response = Client().submit(request)
for tool_use in response.tool_uses:
    print(tool_use.parse_input(SuperBowl))
