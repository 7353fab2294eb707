from .base import ChatMessage, LLMClient, ReasoningEngine
from .factory import EngineFactory, build_engine_factory, build_llm
from .mock import MockLLM, ScriptedLLM
from .session import ChatSession

__all__ = [
    "ChatMessage",
    "ChatSession",
    "EngineFactory",
    "LLMClient",
    "MockLLM",
    "ReasoningEngine",
    "ScriptedLLM",
    "build_engine_factory",
    "build_llm",
]
