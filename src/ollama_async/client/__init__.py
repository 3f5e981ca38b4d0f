"""Client interfaces for the Ollama REST API."""

from ollama_async.client.async_client import AsyncOllamaClient, AsyncOllamaConfig

__all__ = ["AsyncOllamaClient", "AsyncOllamaConfig"]
