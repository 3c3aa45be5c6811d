"""
Tests for the reasoning gateway.

The Instructor client is mocked: create_with_completion returns
(structured, completion) like the real one.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from banquet.config import Settings
from banquet.errors import GatewayError
from banquet.llm.client import ReasoningGateway
from banquet.workflow.state import DietaryAnalysis

from conftest import _run, dietary_analysis


def _completion(content=None, model="gpt-4-0613", prompt_tokens=120, completion_tokens=80):
    completion = MagicMock()
    completion.model = model
    completion.choices = [MagicMock(message=MagicMock(content=content))]
    completion.usage = MagicMock(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens)
    return completion


def _gateway(create, **kwargs):
    client = MagicMock()
    client.chat.completions.create_with_completion = create
    kwargs.setdefault("backoff_seconds", 0)
    return ReasoningGateway(client, settings=Settings(), **kwargs)


def _call(gateway, **kwargs):
    return _run(gateway.call(
        system_prompt="You are a dietary specialist.",
        user_prompt="Attendees: []",
        response_model=DietaryAnalysis,
        stage="dietary",
        **kwargs,
    ))


class TestReasoningGateway:
    def test_returns_structured_text_and_usage(self):
        analysis = dietary_analysis()
        create = AsyncMock(return_value=(analysis, _completion()))

        response = _call(_gateway(create, retries=2))

        assert response.structured == analysis
        # Tool-call mode: no content, text falls back to the payload
        assert response.text == analysis.model_dump_json()
        assert response.usage.model == "gpt-4-0613"
        assert response.usage.total_tokens == 200

    def test_uses_stage_defaults(self):
        create = AsyncMock(return_value=(dietary_analysis(), _completion(content="{}")))

        response = _run(_gateway(create).call(
            system_prompt="s",
            user_prompt="u",
            response_model=DietaryAnalysis,
            stage="recipe_selection",
        ))

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 1000
        assert kwargs["response_model"] is DietaryAnalysis
        assert kwargs["messages"][0] == {"role": "system", "content": "s"}
        assert response.text == "{}"

    def test_overrides_win(self):
        create = AsyncMock(return_value=(dietary_analysis(), _completion()))

        _call(_gateway(create), model="gpt-4o", temperature=0.0, max_tokens=50)

        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.0
        assert kwargs["max_tokens"] == 50

    def test_retries_transient_failure(self):
        analysis = dietary_analysis()
        create = AsyncMock(side_effect=[TimeoutError("timed out"), (analysis, _completion())])

        response = _call(_gateway(create, retries=2))

        assert response.structured == analysis
        assert create.await_count == 2
        assert response.retries == 1

    def test_raises_after_last_attempt(self):
        create = AsyncMock(side_effect=RuntimeError("rate limited"))

        with pytest.raises(GatewayError, match="after 3 attempts") as exc_info:
            _call(_gateway(create, retries=2))

        assert exc_info.value.attempts == 3
        assert create.await_count == 3

    def test_zero_retries_is_one_attempt(self):
        create = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(GatewayError):
            _call(_gateway(create), retries=0)

        assert create.await_count == 1

    def test_first_attempt_success_has_no_retries(self):
        create = AsyncMock(return_value=(dietary_analysis(), _completion()))

        assert _call(_gateway(create)).retries == 0

    def test_backoff_doubles_between_attempts(self):
        create = AsyncMock(side_effect=RuntimeError("rate limited"))

        with patch("banquet.llm.client.asyncio.sleep", new_callable=AsyncMock) as sleep:
            with pytest.raises(GatewayError):
                _call(_gateway(create, retries=3, backoff_seconds=1.0))

        # No sleep after the last attempt
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 4.0]
        assert create.await_count == 4
