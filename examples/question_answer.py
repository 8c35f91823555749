from tyrell import ChatRequest, Client, Model, Role, TextBlock

request = (
    ChatRequest.builder()
    .model(Model.OPUS_3)
    .add_message(Role.USER, [TextBlock(text="who was the 16th president of the United States?")])
    .max_tokens(200)
    .build()
)

response = Client().submit(request)
print(response.model_dump_json(indent=2))
