from unittest.mock import MagicMock, patch

import pytest

from config import Configuration
from services.llm import AgentTextGenerator, GeminiTextGenerator, GenerationError, build_text_generator


def test_no_llm_configured():
    assert build_text_generator(Configuration()) is None


@patch("services.llm.genai.Client")
def test_gemini_generate(mock_client_cls):
    mock_client_cls.return_value.models.generate_content.return_value = MagicMock(text='{"ok": true}')
    gen = build_text_generator(Configuration(llm_provider="google", llm_api_key="key", llm_model_id="gemini-test"))
    assert isinstance(gen, GeminiTextGenerator)

    assert gen.generate("prompt", temperature=0.7, max_tokens=1200) == '{"ok": true}'
    kwargs = mock_client_cls.return_value.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-test"
    assert kwargs["contents"] == "prompt"
    assert kwargs["config"].temperature == 0.7
    assert kwargs["config"].max_output_tokens == 1200


@patch("services.llm.genai.Client")
def test_gemini_failures_raise_generation_error(mock_client_cls):
    gen = GeminiTextGenerator(Configuration(llm_provider="google", llm_api_key="key"))
    mock_client_cls.return_value.models.generate_content.side_effect = RuntimeError("429")
    with pytest.raises(GenerationError):
        gen.generate("p", temperature=0.1, max_tokens=10)

    mock_client_cls.return_value.models.generate_content.side_effect = None
    mock_client_cls.return_value.models.generate_content.return_value = MagicMock(text="   ")
    with pytest.raises(GenerationError):
        gen.generate("p", temperature=0.1, max_tokens=10)


def test_google_without_key_falls_back_to_agent():
    gen = build_text_generator(Configuration(llm_provider="google"))
    assert isinstance(gen, AgentTextGenerator)


def test_agent_kwargs_for_ollama():
    cfg = Configuration(llm_provider="ollama", local_llm="llama3.2", ollama_base_url="http://localhost:11434")
    gen = build_text_generator(cfg)
    assert isinstance(gen, AgentTextGenerator)
    kw = gen._llm_kwargs(0.7, 1200)
    assert kw == {
        "temperature": 0.7,
        "max_tokens": 1200,
        "model": "llama3.2",
        "provider": "ollama",
        "base_url": "http://localhost:11434/v1",
    }
