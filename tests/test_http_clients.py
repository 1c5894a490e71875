"""Tests for HTTP-based adapters."""

import asyncio
import json

import pytest

from nutrilog.adapters.openai_vision_client import OpenAIVisionClient


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, output_text: str = json.dumps({"items": []})) -> None:
        self.responses = _FakeResponses(output_text)


def _extract(client: OpenAIVisionClient, reasoning_effort: str | None = "high"):  # type: ignore[no-untyped-def]
    return asyncio.run(
        client.extract(
            model="gpt-5.2",
            reasoning_effort=reasoning_effort,
            store=False,
            image_data_url="data:image/jpeg;base64,ZmFrZQ==",
            schema={"type": "object"},
            prompt="Analyze this meal",
        )
    )


def test_openai_vision_client_parses_output() -> None:
    fake = _FakeOpenAI()
    client = OpenAIVisionClient(client=fake)  # type: ignore[arg-type]

    result = _extract(client)

    assert result == {"items": []}
    payload = fake.responses.last_payload
    assert payload is not None
    assert payload["text"]["format"]["name"] == "meal_analysis"  # type: ignore[index]
    assert payload["reasoning"] == {"effort": "high"}


def test_openai_vision_client_omits_empty_reasoning() -> None:
    fake = _FakeOpenAI()
    client = OpenAIVisionClient(client=fake)  # type: ignore[arg-type]

    _extract(client, reasoning_effort=None)

    assert fake.responses.last_payload is not None
    assert "reasoning" not in fake.responses.last_payload


@pytest.mark.parametrize("output_text", ["", "not json", "[1, 2]"])
def test_openai_vision_client_rejects_unreadable_output(output_text: str) -> None:
    client = OpenAIVisionClient(client=_FakeOpenAI(output_text))  # type: ignore[arg-type]

    with pytest.raises(ValueError):
        _extract(client)
