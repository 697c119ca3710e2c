"""
Unit tests for LLM models and model resolution.
"""

import pytest
from pydantic import ValidationError

from mcpagent.llm.config import MODELS, LLMConfig, resolve_model
from mcpagent.llm.models import LLMProvider, Message, ModelSpec, TokenUsage


def test_message_validation():
    """Test Message model validation."""
    msg = Message(role="user", content="Hello")
    assert msg.role == "user"
    assert msg.content == "Hello"


def test_message_invalid_role():
    """Test Message rejects roles the history never uses."""
    with pytest.raises(ValidationError):
        Message(role="tool", content="Hello")


def test_model_spec_cost():
    """Test per-call cost from token usage."""
    usage = TokenUsage(input_tokens=1000, output_tokens=2000, total_tokens=3000)
    spec = ModelSpec(
        provider=LLMProvider.ANTHROPIC,
        model_id="claude-sonnet-4",
        input_cost_per_1m=3.00,
        output_cost_per_1m=15.00,
    )

    # (1000/1M * $3) + (2000/1M * $15) = $0.003 + $0.03 = $0.033
    assert abs(spec.cost(usage) - 0.033) < 0.0001
    assert spec.priced is True


def test_unpriced_model_spec():
    spec = ModelSpec(provider=LLMProvider.OPENAI, model_id="gpt-4.1")
    assert spec.priced is False


def test_resolve_alias():
    """Test aliases resolve to their configured spec."""
    assert resolve_model("claude-sonnet-4") is MODELS["claude-sonnet-4"]
    assert resolve_model("gpt-4o").provider == LLMProvider.OPENAI


@pytest.mark.parametrize(
    "name,provider",
    [
        ("claude-3-5-haiku-20241022", LLMProvider.ANTHROPIC),
        ("gpt-4.1-mini", LLMProvider.OPENAI),
        ("o3-mini", LLMProvider.OPENAI),
    ],
)
def test_resolve_raw_model_id(name, provider):
    """Test raw model ids route by prefix and are unpriced."""
    spec = resolve_model(name)
    assert spec.provider == provider
    assert spec.model_id == name
    assert spec.priced is False


def test_resolve_unknown_model():
    with pytest.raises(ValueError, match="Unknown model"):
        resolve_model("gemini-2.0-flash")


def test_config_api_key_for_provider():
    config = LLMConfig(anthropic_api_key="sk-ant-test", openai_api_key="sk-test")
    assert config.api_key_for(LLMProvider.ANTHROPIC) == "sk-ant-test"
    assert config.api_key_for(LLMProvider.OPENAI) == "sk-test"


def test_config_excludes_api_keys_from_dump():
    config = LLMConfig(anthropic_api_key="sk-ant-test")
    assert "anthropic_api_key" not in config.model_dump()
