"""Tests for project, document, conversation and storage data access with mocked Supabase."""

from unittest.mock import MagicMock, patch

import pytest

from brd_engine.core.errors import (
    ConversationNotFoundError,
    DocumentNotFoundError,
    ProjectNotFoundError,
    StorageServiceError,
    ValidationFailedError,
)
from brd_engine.db import conversations, documents, projects, storage


@pytest.fixture
def mock_supabase():
    """One mock client shared by every data-access module."""
    client = MagicMock()
    with (
        patch("brd_engine.db.documents.get_supabase", return_value=client),
        patch("brd_engine.db.projects.get_supabase", return_value=client),
        patch("brd_engine.db.conversations.get_supabase", return_value=client),
        patch("brd_engine.db.storage.get_supabase", return_value=client),
    ):
        yield client


class TestDocuments:
    def test_create_document_is_unprocessed(self, mock_supabase):
        mock_supabase.table.return_value.insert.return_value.execute.return_value = MagicMock(
            data=[{"id": "doc-1", "processed": False}]
        )

        doc = documents.create_document("p1", "u1", "notes.txt", "txt", "u1/1_notes.txt", 12)

        assert doc["id"] == "doc-1"
        record = mock_supabase.table.return_value.insert.call_args[0][0]
        assert record["processed"] is False
        assert record["file_type"] == "txt"
        assert record["user_id"] == "u1"

    def test_get_document_scoped_to_owner(self, mock_supabase):
        select = mock_supabase.table.return_value.select.return_value
        select.eq.return_value.eq.return_value.execute.return_value = MagicMock(data=[])

        assert documents.get_document("doc-1", "intruder") is None
        select.eq.assert_called_once_with("id", "doc-1")
        select.eq.return_value.eq.assert_called_once_with("user_id", "intruder")

    def test_require_document_raises(self, mock_supabase):
        select = mock_supabase.table.return_value.select.return_value
        select.eq.return_value.eq.return_value.execute.return_value = MagicMock(data=[])

        with pytest.raises(DocumentNotFoundError):
            documents.require_document("doc-1", "u1")

    def test_lookup_failure_is_storage_error(self, mock_supabase):
        select = mock_supabase.table.return_value.select.return_value
        select.eq.return_value.eq.return_value.execute.side_effect = Exception(
            "invalid input syntax for type uuid"
        )

        with pytest.raises(StorageServiceError, match="invalid input syntax"):
            documents.get_document("abc", "u1")

    def test_list_failure_is_storage_error(self, mock_supabase):
        query = mock_supabase.table.return_value.select.return_value.eq.return_value
        query.order.return_value.execute.side_effect = Exception("timeout")

        with pytest.raises(StorageServiceError):
            documents.list_documents("u1")

    def test_failed_run_records_error(self, mock_supabase):
        documents.update_document_status("doc-1", False, "No text extracted from document: a.txt")

        update = mock_supabase.table.return_value.update.call_args[0][0]
        assert update["processed"] is False
        assert update["error"] == "No text extracted from document: a.txt"
        assert update["processed_at"]

    def test_successful_run_clears_error(self, mock_supabase):
        documents.update_document_status("doc-1", True)

        update = mock_supabase.table.return_value.update.call_args[0][0]
        assert update["processed"] is True
        assert update["error"] is None

    def test_status_write_failure(self, mock_supabase):
        (
            mock_supabase.table.return_value.update.return_value.eq.return_value.execute.side_effect
        ) = Exception("timeout")

        with pytest.raises(StorageServiceError):
            documents.update_document_status("doc-1", True)

    def test_processed_documents_query(self, mock_supabase):
        query = mock_supabase.table.return_value.select.return_value.eq.return_value
        query.eq.return_value.eq.return_value.order.return_value.execute.return_value = MagicMock(
            data=[{"id": "doc-1"}]
        )

        assert documents.get_processed_documents("p1", "u1") == [{"id": "doc-1"}]
        query.eq.assert_called_once_with("project_id", "p1")
        query.eq.return_value.eq.assert_called_once_with("processed", True)
        query.eq.return_value.eq.return_value.order.assert_called_once_with("uploaded_at", desc=True)


class TestProjects:
    def test_require_project_raises_for_foreign_project(self, mock_supabase):
        select = mock_supabase.table.return_value.select.return_value
        select.eq.return_value.eq.return_value.execute.return_value = MagicMock(data=[])

        with pytest.raises(ProjectNotFoundError, match="Project not found"):
            projects.require_project("p1", "intruder")

    def test_lookup_failure_is_storage_error(self, mock_supabase):
        select = mock_supabase.table.return_value.select.return_value
        select.eq.return_value.eq.return_value.execute.side_effect = Exception("timeout")

        with pytest.raises(StorageServiceError):
            projects.require_project("p1", "u1")

    def test_update_ignores_unknown_fields(self, mock_supabase):
        update = mock_supabase.table.return_value.update
        update.return_value.eq.return_value.eq.return_value.execute.return_value = MagicMock(
            data=[{"id": "p1", "name": "Renamed"}]
        )

        projects.update_project("p1", "u1", {"name": "Renamed", "user_id": "other"})

        written = update.call_args[0][0]
        assert written["name"] == "Renamed"
        assert "user_id" not in written
        assert "updated_at" in written

    def test_update_missing_project(self, mock_supabase):
        update = mock_supabase.table.return_value.update
        update.return_value.eq.return_value.eq.return_value.execute.return_value = MagicMock(data=[])

        with pytest.raises(ProjectNotFoundError):
            projects.update_project("p1", "u1", {"name": "x"})

    def test_save_brd(self, mock_supabase):
        mock_supabase.table.return_value.insert.return_value.execute.return_value = MagicMock(
            data=[{"id": "brd-1"}]
        )

        brd = projects.save_brd("p1", "Acme BRD", "# BRD", "# BRD")

        assert brd == {"id": "brd-1"}
        mock_supabase.table.assert_called_with("brds")

    def test_project_stats(self, mock_supabase):
        with (
            patch("brd_engine.db.projects.documents_db.count_documents", side_effect=[3, 2]),
            patch("brd_engine.db.projects.vectors.count_chunks", return_value=17) as count_chunks,
        ):
            eq = mock_supabase.table.return_value.select.return_value.eq.return_value
            eq.execute.side_effect = [
                MagicMock(count=1),
                MagicMock(count=0),
                MagicMock(data=[{"id": "d1"}, {"id": "d2"}, {"id": "d3"}]),
            ]

            stats = projects.get_project_stats("p1")

        assert stats == {
            "total_documents": 3,
            "processed_documents": 2,
            "total_chunks": 17,
            "conversations": 1,
            "brds": 0,
        }
        count_chunks.assert_called_once_with(["d1", "d2", "d3"])


class TestConversations:
    def test_require_conversation_raises(self, mock_supabase):
        select = mock_supabase.table.return_value.select.return_value
        select.eq.return_value.eq.return_value.execute.return_value = MagicMock(data=[])

        with pytest.raises(ConversationNotFoundError):
            conversations.require_conversation("c1", "u1")

    def test_message_load_failure_is_storage_error(self, mock_supabase):
        eq = mock_supabase.table.return_value.select.return_value.eq.return_value
        eq.order.return_value.execute.side_effect = Exception("timeout")

        with pytest.raises(StorageServiceError):
            conversations.get_messages("c1")

    def test_create_message_defaults_sources(self, mock_supabase):
        mock_supabase.table.return_value.insert.return_value.execute.return_value = MagicMock(
            data=[{"id": "m1"}]
        )

        conversations.create_message("c1", "user", "Hi")

        record = mock_supabase.table.return_value.insert.call_args[0][0]
        assert record["sources"] == []
        assert record["role"] == "user"

    def test_recent_messages_are_returned_oldest_first(self, mock_supabase):
        eq = mock_supabase.table.return_value.select.return_value.eq.return_value
        eq.order.return_value.limit.return_value.execute.return_value = MagicMock(
            data=[{"id": "m3"}, {"id": "m2"}]
        )

        messages = conversations.get_messages("c1", limit=2)

        assert [m["id"] for m in messages] == ["m2", "m3"]
        eq.order.assert_called_once_with("created_at", desc=True)
        eq.order.return_value.limit.assert_called_once_with(2)


class TestStorage:
    def test_storage_path_is_sanitized(self):
        path = storage.generate_storage_path("u1", "Q3 plan (final)#2.pdf")

        user, name = path.split("/")
        timestamp, sanitized = name.split("_", 1)
        assert user == "u1"
        assert timestamp.isdigit()
        assert sanitized == "Q3_plan__final__2.pdf"

    @pytest.mark.parametrize(
        "user_id, folder",
        [
            ("user-1", "user-1"),
            ("../other", ".._other"),
            ("a/b", "a_b"),
            ("..", "__"),
        ],
    )
    def test_user_id_is_sanitized_in_path(self, user_id, folder):
        path = storage.generate_storage_path(user_id, "notes.txt")

        assert path.split("/")[0] == folder
        assert path.count("/") == 1

    def test_owned_path_accepted(self):
        assert storage.require_owned_path("user-1", "user-1/1_a.pdf") == "user-1/1_a.pdf"

    @pytest.mark.parametrize(
        "path",
        [
            "other-user/1_a.pdf",
            "user-1",
            "user-1/",
            "user-1/../other-user/1_a.pdf",
            "user-10/1_a.pdf",
        ],
    )
    def test_foreign_path_rejected(self, path):
        with pytest.raises(ValidationFailedError):
            storage.require_owned_path("user-1", path)

    def test_upload_uses_bucket_and_content_type(self, mock_supabase):
        storage.upload_file("u1/1_a.pdf", b"%PDF", "application/pdf")

        mock_supabase.storage.from_.assert_called_once_with("documents")
        kwargs = mock_supabase.storage.from_.return_value.upload.call_args.kwargs
        assert kwargs["path"] == "u1/1_a.pdf"
        assert kwargs["file_options"]["content-type"] == "application/pdf"

    def test_signed_upload_url(self, mock_supabase):
        bucket = mock_supabase.storage.from_.return_value
        bucket.create_signed_upload_url.return_value = {
            "signed_url": "https://test.supabase.co/upload",
            "token": "t",
            "path": "u1/1_a.pdf",
        }

        assert storage.create_upload_url("u1/1_a.pdf") == "https://test.supabase.co/upload"

    def test_download_failure(self, mock_supabase):
        mock_supabase.storage.from_.return_value.download.side_effect = Exception("404")

        with pytest.raises(StorageServiceError, match="Failed to download file"):
            storage.download_file("u1/missing.pdf")
