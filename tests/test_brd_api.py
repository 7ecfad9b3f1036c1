"""Tests for BRD generation endpoints."""

import io
from unittest.mock import patch
from uuid import uuid4

import pytest
from docx import Document
from fastapi.testclient import TestClient

from brd_engine.core.brd_docx import DOCX_CONTENT_TYPE
from brd_engine.core.errors import GenerationServiceError, NoDocumentsError, ProjectNotFoundError
from brd_engine.main import app

PROJECT_ID = str(uuid4())
USER_ID = "user-1"
HEADERS = {"X-User-Id": USER_ID}

BRD_MARKDOWN = """## 1. Executive Summary
A self-service onboarding portal.

| Name/Role | Responsibilities |
|---|---|
| Sponsor | Funding |
"""

client = TestClient(app)


@pytest.fixture
def brd_mocks():
    with (
        patch("brd_engine.db.projects.require_project") as require_project,
        patch("brd_engine.api.brd.generate_business_requirement_document") as generate,
        patch("brd_engine.db.projects.save_brd") as save_brd,
    ):
        require_project.return_value = {"id": PROJECT_ID}
        generate.return_value = BRD_MARKDOWN
        save_brd.return_value = {"id": "brd-1"}
        yield {"require_project": require_project, "generate": generate, "save_brd": save_brd}


class TestGenerateDocx:
    def test_returns_docx_attachment(self, brd_mocks):
        response = client.post("/v1/generate-brd", json={"project_id": PROJECT_ID}, headers=HEADERS)

        assert response.status_code == 200
        assert response.headers["content-type"] == DOCX_CONTENT_TYPE
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="BRD_')
        assert disposition.endswith('.docx"')
        assert "x-brd-id" not in response.headers

        document = Document(io.BytesIO(response.content))
        assert document.paragraphs[0].text == "Business Requirements Document"
        assert len(document.tables) == 1
        brd_mocks["generate"].assert_called_once_with(PROJECT_ID, USER_ID)
        brd_mocks["save_brd"].assert_not_called()

    def test_save_persists_and_returns_id(self, brd_mocks):
        response = client.post(
            "/v1/generate-brd",
            json={"project_id": PROJECT_ID, "title": "Acme BRD", "save": True},
            headers=HEADERS,
        )

        assert response.status_code == 200
        assert response.headers["x-brd-id"] == "brd-1"
        brd_mocks["save_brd"].assert_called_once_with(
            PROJECT_ID, "Acme BRD", BRD_MARKDOWN, BRD_MARKDOWN
        )
        assert Document(io.BytesIO(response.content)).paragraphs[0].text == "Acme BRD"

    def test_no_processed_documents(self, brd_mocks):
        brd_mocks["generate"].side_effect = NoDocumentsError()

        response = client.post("/v1/generate-brd", json={"project_id": PROJECT_ID}, headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["detail"].startswith("No processed documents found")

    def test_unknown_project(self, brd_mocks):
        brd_mocks["require_project"].side_effect = ProjectNotFoundError(PROJECT_ID)

        response = client.post("/v1/generate-brd", json={"project_id": PROJECT_ID}, headers=HEADERS)

        assert response.status_code == 404
        brd_mocks["generate"].assert_not_called()

    def test_generation_failure(self, brd_mocks):
        brd_mocks["generate"].side_effect = GenerationServiceError("overloaded")

        response = client.post("/v1/generate-brd", json={"project_id": PROJECT_ID}, headers=HEADERS)

        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to generate BRD: overloaded"

    def test_unexpected_failure(self, brd_mocks):
        brd_mocks["generate"].side_effect = RuntimeError("boom")

        response = client.post("/v1/generate-brd", json={"project_id": PROJECT_ID}, headers=HEADERS)

        assert response.status_code == 500


class TestPreview:
    def test_preview_returns_markdown(self, brd_mocks):
        response = client.get(f"/v1/generate-brd?project_id={PROJECT_ID}", headers=HEADERS)

        assert response.status_code == 200
        assert response.json() == {"success": True, "markdown": BRD_MARKDOWN, "brd_id": None}

    def test_preview_with_save(self, brd_mocks):
        response = client.get(
            f"/v1/generate-brd?project_id={PROJECT_ID}&save=true", headers=HEADERS
        )

        assert response.json()["brd_id"] == "brd-1"
        assert brd_mocks["save_brd"].call_args.args[1] == "Business Requirements Document"

    def test_preview_failure_prefix(self, brd_mocks):
        brd_mocks["generate"].side_effect = GenerationServiceError("overloaded")

        response = client.get(f"/v1/generate-brd?project_id={PROJECT_ID}", headers=HEADERS)

        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to generate BRD preview: overloaded"
