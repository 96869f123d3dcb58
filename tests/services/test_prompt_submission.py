from prompt_studio.integrations.backend_client import BackendError
from prompt_studio.schemas.prompts import PromptPayload, PromptVariable
from prompt_studio.services.prompt_submission import PromptSubmitter


class _StubClient:
    def __init__(self, error: BackendError | None = None) -> None:
        self.error = error
        self.created: list[PromptPayload] = []
        self.updated: list[tuple[int, PromptPayload]] = []

    def create_prompt(self, payload):
        if self.error:
            raise self.error
        self.created.append(payload)
        return {"id": 1, "name": payload.name}

    def update_prompt(self, prompt_id, payload):
        if self.error:
            raise self.error
        self.updated.append((prompt_id, payload))
        return {"id": prompt_id, "name": payload.name}


def _payload() -> PromptPayload:
    return PromptPayload(
        name="summary",
        content="Summarise {text}",
        project_id=3,
        variables=[PromptVariable(name="text", description="Input text")],
    )


def test_submit_without_prompt_id_creates() -> None:
    client = _StubClient()
    result = PromptSubmitter(client).submit(_payload())

    assert result.ok
    assert result.record == {"id": 1, "name": "summary"}
    assert len(client.created) == 1
    assert client.updated == []


def test_submit_with_prompt_id_updates() -> None:
    client = _StubClient()
    result = PromptSubmitter(client).submit(_payload(), prompt_id=9)

    assert result.ok
    assert client.updated[0][0] == 9
    assert client.created == []


def test_backend_failure_is_returned_not_raised() -> None:
    client = _StubClient(error=BackendError("Project is archived", status_code=400))
    result = PromptSubmitter(client).submit(_payload())

    assert not result.ok
    assert result.error == "Project is archived"
    assert result.record is None
