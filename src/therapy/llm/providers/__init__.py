from .ollama import OllamaBackend
from .openai import OpenAIBackend

__all__ = ["OllamaBackend", "OpenAIBackend"]
