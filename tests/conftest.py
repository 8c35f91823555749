import json
import socket
from contextlib import closing
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Thread

import pytest

from tyrell import ChatRequest, Model, Role, TextBlock

FIXED_ANSWER = "The 16th President of the United States was Abraham Lincoln."


def pick_free_tcp_port(host: str = "127.0.0.1") -> int:
    """Return a port nothing is listening on, to stand in for an unreachable endpoint."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind((host, 0))
        return s.getsockname()[1]


def message_reply(text: str = FIXED_ANSWER) -> dict:
    return {
        "id": "msg_01RhY4TxxRHM2b3N81ijdJms",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
        "model": "claude-3-opus-20240229",
        "stop_reason": "end_turn",
        "stop_sequence": None,
        "usage": {"input_tokens": 21, "output_tokens": 17},
    }


@dataclass
class StubEndpoint:
    """Canned reply plus a record of every request the stub received."""

    port: int = 0
    status: int = 200
    body: bytes = field(default_factory=lambda: json.dumps(message_reply()).encode())
    requests: list[dict] = field(default_factory=list)

    @property
    def base_url(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    def reply(self, status: int, payload: dict | bytes):
        self.status = status
        self.body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()


def _handler_for(stub: StubEndpoint):
    class StubHandler(BaseHTTPRequestHandler):
        def do_POST(self):
            content_length = int(self.headers["Content-Length"])
            stub.requests.append(
                {
                    "path": self.path,
                    "headers": {key.lower(): value for key, value in self.headers.items()},
                    "body": json.loads(self.rfile.read(content_length)),
                }
            )

            self.send_response(stub.status)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(stub.body)))
            self.end_headers()
            self.wfile.write(stub.body)

        def log_message(self, format, *args):
            pass

    return StubHandler


@pytest.fixture
def stub_endpoint():
    stub = StubEndpoint()
    try:
        server = HTTPServer(("127.0.0.1", 0), _handler_for(stub))
    except PermissionError as exc:
        pytest.skip(f"Local HTTP server unavailable in this environment: {exc}")
    stub.port = server.server_address[1]
    thread = Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield stub
    server.shutdown()
    server.server_close()
    thread.join(timeout=1)


@pytest.fixture
def president_request() -> ChatRequest:
    return (
        ChatRequest.builder()
        .model("claude-3-opus-20240229")
        .add_message(Role.USER, [TextBlock(text="who was the 16th president of the United States?")])
        .max_tokens(200)
        .build()
    )


@pytest.fixture
def complete_builder():
    return (
        ChatRequest.builder()
        .model(Model.HAIKU_3)
        .add_message(Role.USER, [TextBlock(text="Hello")])
        .max_tokens(10)
    )
