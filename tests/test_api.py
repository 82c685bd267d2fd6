import json
from pathlib import Path

import pytest

from core.config import settings


def _upload(client, session_id, *files):
    return client.post(f"/sessions/{session_id}/documents", files=[("files", f) for f in files])


@pytest.fixture
def session_id(client):
    response = client.post("/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


@pytest.fixture
def indexed_session(client, session_id, sample_pdf):
    response = _upload(client, session_id, ("energy.pdf", sample_pdf, "application/pdf"))
    assert response.status_code == 200, response.text
    return session_id


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_home_page_renders(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "Select PDFs to chat" in response.text


def test_new_session_is_not_initialized(client):
    response = client.post("/sessions")

    assert response.json()["status"] == "Chat engine is not initialized."


def test_unknown_session_is_404(client):
    response = client.get("/sessions/does-not-exist/status")

    assert response.status_code == 404
    assert response.json()["detail"] == "Session not found"


def test_chat_before_upload_is_rejected(client, session_id):
    response = client.post(f"/sessions/{session_id}/chat", json={"message": "hello"})

    assert response.status_code == 409
    assert response.json()["detail"] == "Chat engine is not initialized."


def test_upload_without_pdfs_is_rejected(client, session_id):
    response = _upload(client, session_id, ("notes.txt", b"plain text", "text/plain"))

    assert response.status_code == 400
    assert response.json()["detail"] == "Drop PDFs only"


def test_upload_builds_index(client, session_id, sample_pdf):
    response = _upload(
        client,
        session_id,
        ("energy.pdf", sample_pdf, "application/pdf"),
        ("notes.txt", b"ignored", "text/plain"),
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["message"] == "Done creating Index from the PDFs."
    assert body["files"] == ["energy.pdf"]
    assert body["skipped_files"] == ["notes.txt"]
    assert body["documents_count"] == 2
    assert (body["chunk_size"], body["chunk_overlap"]) == (300, 20)
    assert len(body["summaries"]) == 2

    status = client.get(f"/sessions/{session_id}/status").json()
    assert status["status"] == "Chat engine is running."
    assert status["has_index"] is True
    assert status["refresh_scheduled"] is True


def test_upload_with_blank_page_is_rejected(client, session_id, pdf_factory):
    pdf_bytes = pdf_factory(["Some real text on page one.", ""])

    response = _upload(client, session_id, ("blank.pdf", pdf_bytes, "application/pdf"))

    assert response.status_code == 400
    assert response.json()["detail"] == "Document validation failed."
    assert client.get(f"/sessions/{session_id}/status").json()["has_index"] is False


def test_unreadable_pdf_is_rejected(client, session_id):
    response = _upload(client, session_id, ("broken.pdf", b"not a pdf", "application/pdf"))

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Failed to extract text from PDF")


def test_indexing_failure_reports_status_string(client, session_id, sample_pdf, embedding_service):
    embedding_service.fail = True

    response = _upload(client, session_id, ("energy.pdf", sample_pdf, "application/pdf"))

    assert response.status_code == 500
    assert response.json()["detail"] == "Error while creating index"


def test_file_list_and_preview(client, indexed_session, sample_pdf):
    files = client.get(f"/sessions/{indexed_session}/files").json()

    assert files == [{
        "index": 0,
        "name": "energy.pdf",
        "size": len(sample_pdf),
        "page_count": 2,
        "preview_url": f"/sessions/{indexed_session}/files/0",
    }]

    preview = client.get(files[0]["preview_url"])
    assert preview.status_code == 200
    assert preview.headers["content-type"] == "application/pdf"
    assert preview.content == sample_pdf

    assert client.get(f"/sessions/{indexed_session}/files/5").status_code == 404


def test_chat_returns_response_with_source_page(client, indexed_session):
    response = client.post(f"/sessions/{indexed_session}/chat", json={"message": "How do wind turbines work?"})

    assert response.status_code == 200
    body = response.json()
    assert body["response"] == "Answer to: How do wind turbines work?"
    assert body["status"] == "Got response from AI."
    assert body["metadata"][0]["source"] == "energy.pdf"
    assert body["page"] == body["metadata"][0]["page_number"]

    messages = client.get(f"/sessions/{indexed_session}/messages").json()["messages"]
    assert messages == [
        {"role": "human", "statement": "How do wind turbines work?"},
        {"role": "ai", "statement": "Answer to: How do wind turbines work?"},
    ]


def test_empty_model_response(client, indexed_session, llm_service):
    llm_service.response = ""

    response = client.post(f"/sessions/{indexed_session}/chat", json={"message": "anything"})

    assert response.status_code == 502
    assert response.json()["detail"] == "No response from the chat engine."


def test_reset_clears_messages(client, indexed_session):
    client.post(f"/sessions/{indexed_session}/chat", json={"message": "hello"})

    assert client.post(f"/sessions/{indexed_session}/reset").status_code == 200
    assert client.get(f"/sessions/{indexed_session}/messages").json()["messages"] == []
    assert client.get(f"/sessions/{indexed_session}/status").json()["status"] == "Chat engine is running."


def test_save_export_list_load_and_archive(client, indexed_session, chat_store):
    client.post(f"/sessions/{indexed_session}/chat", json={"message": "hi"})

    saved = client.post(f"/sessions/{indexed_session}/chats/save").json()
    exported = client.post(f"/sessions/{indexed_session}/chats/export").json()

    saved_path = Path(saved["path"])
    assert saved["message_count"] == 2
    assert json.loads(saved_path.read_text())[0] == {"role": "human", "statement": "hi"}
    assert Path(exported["path"]).read_text().splitlines()[0] == "Human: hi"

    listed = {item["filename"] for item in client.get("/chats").json()}
    assert listed == {saved_path.name, Path(exported["path"]).name}

    loaded = client.get(f"/chats/{saved_path.name}").json()
    assert loaded[0] == {"role": "human", "statement": "hi"}
    assert client.get("/chats/chat-missing.json").json() == []

    archived = client.post("/chats/archive").json()
    assert archived["archived"] == 2
    assert client.get("/chats").json() == []


def test_reload_documents(client, indexed_session):
    response = client.post(f"/sessions/{indexed_session}/documents/reload")

    assert response.status_code == 200
    assert response.json()["message"] == "Documents reloaded and index refreshed."


def test_reload_without_documents(client, session_id):
    response = client.post(f"/sessions/{session_id}/documents/reload")

    assert response.status_code == 400


def test_export_index(client, session_id, sample_pdf, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "INDEX_EXPORT_DIR", str(tmp_path / "exports"))

    response = client.post(f"/sessions/{session_id}/index/export")
    assert response.status_code == 404
    assert response.json()["detail"] == "Index is not initialized."

    _upload(client, session_id, ("energy.pdf", sample_pdf, "application/pdf"))
    response = client.post(f"/sessions/{session_id}/index/export")

    assert response.status_code == 200
    path = Path(response.json()["path"])
    assert path.parent == tmp_path / "exports"
    assert len(json.loads(path.read_text())["nodes"]) == response.json()["chunks_count"]


def test_close_session(client, indexed_session):
    assert client.delete(f"/sessions/{indexed_session}").status_code == 200
    assert client.get(f"/sessions/{indexed_session}/status").status_code == 404
    assert client.delete(f"/sessions/{indexed_session}").status_code == 404


def test_app_uses_injected_empty_registry(client, registry, chat_store):
    assert len(registry) == 0
    assert client.app.state.registry is registry
    assert client.app.state.chat_store is chat_store

    session_id = client.post("/sessions").json()["session_id"]

    assert registry.get(session_id) is not None


def test_upload_over_size_limit_is_rejected(client, session_id, sample_pdf, monkeypatch):
    monkeypatch.setattr(settings, "MAX_FILE_SIZE_MB", 0)

    response = _upload(client, session_id, ("energy.pdf", sample_pdf, "application/pdf"))

    assert response.status_code == 400
    assert response.json()["detail"] == "File size limit exceeded"
    assert client.get(f"/sessions/{session_id}/status").json()["has_index"] is False


@pytest.mark.parametrize("content", ["{not json", '[{"role": "robot", "statement": "hi"}]', '{"role": "ai"}'])
def test_load_invalid_chat_file(client, chat_store, content):
    chat_store.chats_dir.mkdir(parents=True)
    (chat_store.chats_dir / "chat-bad.json").write_text(content)

    response = client.get("/chats/chat-bad.json")

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid chat file"


def test_archive_with_empty_chats_dir(client, chat_store):
    chat_store.chats_dir.mkdir(parents=True)

    response = client.post("/chats/archive")

    assert response.json()["archived"] == 0
    assert not chat_store.archive_dir.exists()
