from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from google import genai
from google.genai import types
from loguru import logger

from config import Configuration
from utils import strip_thinking_tokens

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


class GenerationError(RuntimeError):
    pass


class TextGenerator(Protocol):
    name: str

    def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        ...


class GeminiTextGenerator:
    name = "gemini"

    def __init__(self, cfg: Configuration) -> None:
        if not cfg.llm_api_key:
            raise ValueError("LLM_API_KEY (or GOOGLE_AI_API_KEY) is required for Gemini")
        self.model_id = cfg.llm_model_id or DEFAULT_GEMINI_MODEL
        self.client = genai.Client(api_key=cfg.llm_api_key)

    def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        try:
            response = self.client.models.generate_content(
                model=self.model_id,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                ),
            )
        except Exception as exc:
            raise GenerationError(f"gemini request failed: {exc}") from exc
        text = response.text or ""
        if not text.strip():
            raise GenerationError("gemini returned an empty response")
        return text


class AgentTextGenerator:
    """Ollama or any OpenAI-compatible endpoint through hello-agents."""

    name = "agent"

    def __init__(self, cfg: Configuration) -> None:
        self.cfg = cfg

    def _llm_kwargs(self, temperature: float, max_tokens: int) -> Dict[str, Any]:
        cfg = self.cfg
        kw: Dict[str, Any] = {"temperature": temperature, "max_tokens": max_tokens}
        if cfg.llm_model_id or cfg.local_llm:
            kw["model"] = cfg.llm_model_id or cfg.local_llm
        if cfg.llm_provider:
            kw["provider"] = cfg.llm_provider
        if cfg.llm_base_url:
            kw["base_url"] = cfg.llm_base_url
        elif (cfg.llm_provider or "").lower() == "ollama":
            kw["base_url"] = cfg.sanitized_ollama_url()
        if cfg.llm_api_key:
            kw["api_key"] = cfg.llm_api_key
        return kw

    def generate(self, prompt: str, *, temperature: float, max_tokens: int) -> str:
        from hello_agents import HelloAgentsLLM, ToolAwareSimpleAgent

        try:
            llm = HelloAgentsLLM(**self._llm_kwargs(temperature, max_tokens))
            agent = ToolAwareSimpleAgent(
                name="LunchExplainer",
                llm=llm,
                system_prompt="You are a restaurant recommendation analyst. Reply with JSON only.",
                enable_tool_calling=False,
            )
            raw = agent.run(prompt)
            agent.clear_history()
        except Exception as exc:
            raise GenerationError(f"agent request failed: {exc}") from exc
        text = strip_thinking_tokens(raw or "")
        if not text.strip():
            raise GenerationError("agent returned an empty response")
        return text


def build_text_generator(cfg: Configuration) -> Optional[TextGenerator]:
    """Gemini when configured with a key, hello-agents for other providers, None when no LLM is set up."""
    if not cfg.llm_enabled():
        return None
    provider = (cfg.llm_provider or "").lower()
    if provider in {"google", "gemini"}:
        try:
            return GeminiTextGenerator(cfg)
        except ValueError as exc:
            logger.warning("Gemini unavailable: {}; falling back to agent provider", exc)
    logger.debug("text generation via hello-agents provider={}", provider or "default")
    return AgentTextGenerator(cfg)
