from __future__ import annotations

import base64
from datetime import datetime

import pytest

from prompt_studio.schemas.prompts import PromptVersion
from prompt_studio.schemas.runs import PromptRunRequest, RunRecord, RunResponse
from prompt_studio.schemas.settings import LLMSystem
from prompt_studio.services.run_service import (
    RunError,
    RunService,
    available_models,
    build_run_request,
    default_model,
    render_output,
    run_label,
)


def _version(*, image: bool = False, is_current: bool = True, version: str = "2") -> PromptVersion:
    variables = [{"name": "photo", "type": "image", "required": True}] if image else [
        {"name": "text", "type": "string", "required": True},
    ]
    return PromptVersion.model_validate(
        {
            "version": version,
            "content": "Describe {photo}" if image else "Summarise {text}",
            "variables": variables,
            "prompt_id": 4,
            "project_id": 1,
            "is_current": is_current,
        }
    )


def _systems() -> list[LLMSystem]:
    return [
        LLMSystem(
            id=1,
            name="openai",
            api_key_setting="OPENAI_API_KEY",
            default_model="gpt-4o-mini",
            default_multimodal="gpt-4o",
            available_models='["gpt-4o-mini", "gpt-4o"]',
            is_default=True,
        ),
        LLMSystem(
            id=2,
            name="anthropic",
            api_key_setting="ANTHROPIC_API_KEY",
            default_model="claude-3-haiku",
            default_multimodal=None,
            available_models="not json",
        ),
    ]


def _run(run_id: int, *, output: str = "plain", structured: bool = False) -> RunRecord:
    return RunRecord(
        id=run_id,
        prompt_id=4,
        project_id=1,
        model="gpt-4o-mini",
        structured_output=structured,
        version=2,
        output=output,
        created_at=datetime(2024, 5, 1, 10, 30, run_id),
    )


def test_models_for_text_and_image_versions() -> None:
    assert available_models(_version(), _systems()) == ["gpt-4o-mini", "gpt-4o"]
    assert available_models(_version(image=True), _systems()) == ["gpt-4o"]
    assert default_model(_version(), _systems()) == "gpt-4o-mini"
    assert default_model(_version(image=True), _systems()) == "gpt-4o"
    assert default_model(_version(), _systems()[1:]) is None


def test_build_run_request_requires_all_variables() -> None:
    with pytest.raises(RunError, match="text"):
        build_run_request(_version(), {}, model="gpt-4o-mini")


def test_build_run_request_encodes_images_and_pins_old_versions() -> None:
    request = build_run_request(
        _version(image=True, is_current=False, version="1"),
        {"photo": b"\x89PNG", "ignored": "x"},
        model="gpt-4o",
        structured_output=True,
    )

    assert request.input_variables == {"photo": base64.b64encode(b"\x89PNG").decode("ascii")}
    assert request.version == "1"
    assert request.structured_output is True
    assert build_run_request(_version(), {"text": "hi"}, model="m").version is None


def test_render_output_modes() -> None:
    result = RunResponse(output='{"score": 3}')
    assert render_output(result, structured_output=True).model_dump() == {"kind": "json", "body": {"score": 3}}
    assert render_output(result, structured_output=False, markdown_mode=True).kind == "markdown"
    assert render_output(result, structured_output=False).kind == "text"

    broken = RunResponse(output="not json")
    assert render_output(broken, structured_output=True).model_dump() == {"kind": "text", "body": "not json"}

    whole = render_output(result, structured_output=True, has_image=True)
    assert whole.kind == "json"
    assert whole.body["output"] == '{"score": 3}'


def test_run_label() -> None:
    assert run_label(_run(7)) == "Run 7 - V2 (2024-05-01 10:30:07)"


class _FakeClient:
    def __init__(self) -> None:
        self.posted: list[dict] = []

    def list_prompt_versions(self, prompt_id):
        return [_version().model_dump(mode="json"), _version(is_current=False, version="1").model_dump(mode="json")]

    def list_llm_systems(self):
        return [system.model_dump() for system in _systems()]

    def run_prompt(self, payload):
        self.posted.append(payload)
        return {"output": "Short summary", "total_tokens": 12}

    def list_prompt_runs(self, prompt_id):
        return [
            _run(3, output='{"a": 1}', structured=True).model_dump(mode="json"),
            _run(2).model_dump(mode="json"),
            _run(1).model_dump(mode="json"),
        ]


def test_run_uses_latest_version_and_default_model() -> None:
    client = _FakeClient()
    response = RunService(client).run(4, PromptRunRequest(inputs={"text": "long text"}, markdown_mode=True))

    assert client.posted == [
        {
            "prompt_id": 4,
            "project_id": 1,
            "input_variables": {"text": "long text"},
            "model": "gpt-4o-mini",
            "structured_output": False,
            "markdown_mode": True,
        }
    ]
    assert response.rendered.kind == "markdown"
    assert response.result.total_tokens == 12


def test_run_rejects_unknown_version() -> None:
    with pytest.raises(RunError, match="Version not found"):
        RunService(_FakeClient()).run(4, PromptRunRequest(inputs={"text": "t"}, version="9"))


def test_compare_defaults_to_two_most_recent_runs() -> None:
    view = RunService(_FakeClient()).compare(4)

    assert view.left.run.id == 3
    assert view.right.run.id == 2
    assert view.left.rendered.body == {"a": 1}
    assert view.right.rendered.kind == "text"
    assert view.labels[1] == "Run 1 - V2 (2024-05-01 10:30:01)"


def test_compare_unknown_run() -> None:
    with pytest.raises(RunError):
        RunService(_FakeClient()).compare(4, left_id=3, right_id=99)
