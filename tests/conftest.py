"""
Pytest configuration and fixtures for the Ollama client tests.
"""

import json
import socket
import socketserver
import sys
import threading
from http.server import BaseHTTPRequestHandler
from pathlib import Path
from types import SimpleNamespace

import pytest

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from ollama_async import AsyncOllamaConfig


class ThreadedTCPServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    allow_reuse_address = True
    daemon_threads = True


def _chat_records(model: str, content: str) -> list[dict]:
    words = content.split(" ")
    records = [
        {
            "model": model,
            "created_at": "2025-11-05T11:00:00.000000000Z",
            "message": {"role": "assistant", "content": word if i == 0 else f" {word}"},
            "done": False,
        }
        for i, word in enumerate(words)
    ]
    records.append(
        {
            "model": model,
            "created_at": "2025-11-05T11:00:01.000000000Z",
            "message": {"role": "assistant", "content": ""},
            "done": True,
            "done_reason": "stop",
            "total_duration": 500_000_000,
            "load_duration": 200_000_000,
            "prompt_eval_count": 5,
            "prompt_eval_duration": 100_000_000,
            "eval_count": len(words),
            "eval_duration": 300_000_000,
        }
    )
    return records


def _generate_records(model: str, prompt: str) -> list[dict]:
    return [
        {"model": model, "created_at": "2025-11-05T11:00:00Z", "response": "ECHO:", "done": False},
        {"model": model, "created_at": "2025-11-05T11:00:00Z", "response": f" {prompt}", "done": False},
        {
            "model": model,
            "created_at": "2025-11-05T11:00:01Z",
            "response": "",
            "done": True,
            "context": [1, 2, 3],
            "total_duration": 400_000_000,
            "load_duration": 0,
            "eval_count": 2,
        },
    ]


class OllamaRequestHandler(BaseHTTPRequestHandler):
    def _record_call(self, payload):
        state = self.server.server_state  # type: ignore[attr-defined]
        state["calls"].append(
            {
                "method": self.command,
                "path": self.path,
                "headers": {key.lower(): value for key, value in self.headers.items()},
                "authorization": self.headers.get_all("Authorization") or [],
                "payload": payload,
            }
        )

    def _read_payload(self):
        length = int(self.headers.get("Content-Length", "0"))
        raw = self.rfile.read(length) if length else b""
        if not raw:
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError:
            return {"__invalid__": raw.decode("utf-8", errors="replace")}

    def _failure(self) -> bool:
        state = self.server.server_state  # type: ignore[attr-defined]
        failure = state["failures"].get(self.path)
        if failure is None:
            return False
        status, body = failure
        self._json_response(body, status=status)
        return True

    def _json_response(self, data, status: int = 200):
        payload = data if isinstance(data, bytes) else json.dumps(data).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def _ndjson_response(self, records):
        self.send_response(200)
        self.send_header("Content-Type", "application/x-ndjson")
        self.end_headers()
        for record in records:
            line = record if isinstance(record, bytes) else json.dumps(record).encode("utf-8")
            self.wfile.write(line + b"\n")
            self.wfile.flush()

    def do_HEAD(self):
        self._record_call(None)
        state = self.server.server_state  # type: ignore[attr-defined]
        status = state["failures"].get(self.path, (200, None))[0]
        self.send_response(status)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_GET(self):
        state = self.server.server_state  # type: ignore[attr-defined]
        self._record_call(None)
        if self._failure():
            return
        if self.path == "/api/tags":
            self._json_response({"models": state["models"]})
            return
        self._json_response({"error": "not found"}, status=404)

    def do_DELETE(self):
        state = self.server.server_state  # type: ignore[attr-defined]
        payload = self._read_payload()
        self._record_call(payload)
        if self._failure():
            return
        if self.path == "/api/delete":
            name = (payload or {}).get("name")
            if name not in {model["name"] for model in state["models"]}:
                self._json_response({"error": f"model '{name}' not found"}, status=404)
                return
            state["models"] = [model for model in state["models"] if model["name"] != name]
            self._json_response(b"")
            return
        self._json_response({"error": "not found"}, status=404)

    def do_POST(self):
        state = self.server.server_state  # type: ignore[attr-defined]
        payload = self._read_payload() or {}
        self._record_call(payload)
        if self._failure():
            return

        match self.path:
            case "/api/chat":
                if "chat_body" in state:
                    self._ndjson_response(state["chat_body"])
                    return
                messages = payload.get("messages", [])
                last = messages[-1]["content"] if messages else ""
                self._ndjson_response(_chat_records(payload.get("model", ""), f"Echo: {last}"))
            case "/api/generate":
                self._ndjson_response(
                    _generate_records(payload.get("model", ""), payload.get("prompt", ""))
                )
            case "/api/show":
                self._json_response(
                    {
                        "modelfile": f"FROM {payload.get('name')}",
                        "parameters": "stop <|im_end|>",
                        "template": "{{ .Prompt }}",
                        "details": {"format": "gguf", "family": "llama"},
                        "model_info": {"general.architecture": "llama"},
                    }
                )
            case "/api/copy":
                state["models"].append({"name": payload["destination"]})
                self._json_response(b"")
            case "/api/pull":
                progress = [
                    {"status": "pulling manifest"},
                    {"status": "downloading", "digest": "sha256:abc", "total": 100, "completed": 50},
                    {"status": "downloading", "digest": "sha256:abc", "total": 100, "completed": 100},
                    {"status": "success"},
                ]
                if payload.get("stream", True):
                    self._ndjson_response(progress)
                else:
                    self._json_response(progress[-1])
            case "/api/embeddings":
                if state.get("embeddings_body") is not None:
                    self._json_response(state["embeddings_body"])
                    return
                self._json_response({"embedding": [0.1, 0.2, 0.3]})
            case _:
                self._json_response({"error": "not found"}, status=404)

    def log_message(self, format, *args):
        # Suppress default HTTP server logging to keep test output clean.
        return


@pytest.fixture
def ollama_server():
    """Start a lightweight HTTP server that mimics the Ollama endpoints."""
    state = {
        "models": [
            {"name": "llama3.2:latest", "size": 2019393189, "details": {"family": "llama"}},
            {"name": "qwen3:14b-q4_K_M", "size": 8988124069},
        ],
        "failures": {},
        "calls": [],
    }

    server = ThreadedTCPServer(("127.0.0.1", 0), OllamaRequestHandler)
    server.server_state = state  # type: ignore[attr-defined]

    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()

    base_url = f"http://127.0.0.1:{server.server_address[1]}"

    try:
        yield SimpleNamespace(base_url=base_url, state=state)
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def server_config(ollama_server):
    """AsyncOllamaConfig pointing at the fake server."""
    return AsyncOllamaConfig(base_url=ollama_server.base_url, timeout=10.0)


@pytest.fixture
def unused_base_url():
    """Base URL of a local port nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}"


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep OLLAMA_* variables of the developer's shell out of the tests."""
    from ollama_async.core.config import ClientSettings

    for name in (
        "OLLAMA_BASE_URL",
        "OLLAMA_AUTH_TOKEN",
        "OLLAMA_TIMEOUT",
        "OLLAMA_CONNECT_TIMEOUT",
        "OLLAMA_REQUEST_LOG",
    ):
        monkeypatch.delenv(name, raising=False)
    ClientSettings.get_settings.cache_clear()
    yield
    ClientSettings.get_settings.cache_clear()
