from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from questionnaire_import.api.project_client import ProjectApiClient
from questionnaire_import.config.loader import ApiConfig
from questionnaire_import.errors import ProjectSubmitError
from questionnaire_import.models.bulk_project import BulkProject, ProjectRow
from questionnaire_import.models.uploaded_file import UploadedFile
from questionnaire_import.services import upload_session as flow


def _project() -> BulkProject:
    return BulkProject(
        id="local-id",
        name="Vendor",
        sheet_name="vendor",
        columns=["Question"],
        created_at="2025-01-01T00:00:00Z",
        last_modified_at="2025-01-01T00:00:00Z",
        rows=[ProjectRow(id="r-1", row_number=2, question="Q1", source_tab="vendor")],
    )


def _response(status: int, body=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    resp.text = "raw body"
    return resp


def _client(response=None, side_effect=None, token=None):
    session = MagicMock()
    session.headers = {}
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = response
    client = ProjectApiClient(ApiConfig(base_url="http://app.local/", timeout_seconds=5, token=token), session=session)
    return client, session


def test_create_project_posts_payload_and_returns_echo():
    echo = {"project": {"id": "srv-1", "name": "Vendor", "status": "DRAFT", "rows": []}}
    client, session = _client(_response(201, echo))
    created = client.create_project(_project())
    assert created.id == "srv-1"
    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args[0] == "http://app.local/api/projects"
    assert kwargs["timeout"] == 5
    assert kwargs["json"]["rows"][0]["rowNumber"] == 2
    assert kwargs["json"]["status"] == "draft"


def test_bearer_token_header():
    client, session = _client(_response(201, {"project": {"id": "x"}}), token="secret")
    assert session.headers["Authorization"] == "Bearer secret"
    assert session.headers["Accept"] == "application/json"
    assert client.name == "api"


def test_no_token_no_authorization_header():
    _, session = _client(_response(201, {"project": {"id": "x"}}))
    assert "Authorization" not in session.headers


def test_transport_error_raises_submit_error():
    client, _ = _client(side_effect=requests.ConnectionError("refused"))
    with pytest.raises(ProjectSubmitError) as exc:
        client.create_project(_project())
    assert str(exc.value) == "Failed to save project. Please try again."


@pytest.mark.parametrize("status", [400, 401, 500])
def test_non_2xx_raises_submit_error(status):
    client, _ = _client(_response(status, {"error": "nope"}))
    with pytest.raises(ProjectSubmitError):
        client.create_project(_project())


@pytest.mark.parametrize(
    "body",
    [
        ValueError("not json"),
        {"ok": True},
        {"project": {"name": "no id"}},
        ["list"],
        {"project": None},
        {"project": "srv-1"},
    ],
)
def test_unexpected_body_raises_submit_error(body):
    client, _ = _client(_response(201, body))
    with pytest.raises(ProjectSubmitError):
        client.create_project(_project())


def test_null_project_echo_is_reported_on_session():
    client, _ = _client(_response(201, {"project": None}))
    session = flow.load_file(flow.new_session(), UploadedFile(name="q.csv", content=b"Question\nQ1\n"))
    flow.choose_question_column(session, "Question")
    assert flow.save_project(session, client) is None
    assert session.error_message == "Failed to save project. Please try again."
    assert session.error_type == "SUBMISSION_FAILURE"
