from unittest.mock import patch

import pytest

from tests.helpers import SUMMARY, make_quiz

TXT = "text/plain"
PHOTOSYNTHESIS = b"Photosynthesis converts light into energy."


def _summarize(client, *files, headers=None):
    return client.post(
        "/api/study/summarize",
        files=[("files", f) for f in files],
        headers=headers or {},
    )


def _session(resp):
    return {"X-Session-ID": resp.headers["X-Session-ID"]}


# ── Full study flow ──────────────────────────────────────────

class TestStudyFlow:
    def test_upload_summarize_chat_quiz(self, client, upload_dir, fake_ai):
        resp = _summarize(client, ("bio.txt", PHOTOSYNTHESIS, TXT))
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["summary"] == SUMMARY
        assert data["filenames"] == ["bio.txt"]
        assert data["original_length"] > len(PHOTOSYNTHESIS)
        assert data["summary_length"] == len(SUMMARY)
        headers = _session(resp)
        assert list(upload_dir.iterdir()) == []

        resp = client.post("/api/study/chat", json={"question": "What does photosynthesis do?"}, headers=headers)
        assert resp.status_code == 200, resp.text
        assert resp.json()["answer"].strip()

        resp = client.post("/api/study/quiz/generate", headers=headers)
        assert resp.status_code == 200, resp.text
        questions = resp.json()["questions"]
        assert len(questions) == 5
        for q in questions:
            assert len(q["options"]) == 4
            assert q["correctAnswer"] in {0, 1, 2, 3}

        resp = client.post("/api/study/quiz/grade", json={
            "questions": questions,
            "answers": [q["correctAnswer"] for q in questions],
        })
        assert resp.status_code == 200, resp.text
        assert resp.json()["percentage"] == 100
        assert resp.json()["results"][0]["correctAnswer"] == questions[0]["correctAnswer"]

    def test_multiple_files_keep_upload_order(self, client, fake_ai):
        resp = _summarize(client, ("second.txt", b"zebra", TXT), ("first.txt", b"ant", TXT))
        assert resp.status_code == 200
        assert resp.json()["filenames"] == ["second.txt", "first.txt"]
        prompt = fake_ai.call_args.args[0]
        assert prompt.index("=== second.txt ===") < prompt.index("=== first.txt ===")

    def test_new_summary_replaces_notes(self, client, fake_ai):
        headers = _session(_summarize(client, ("a.txt", b"first", TXT)))
        with patch("app.services.ai_service.generate_content", return_value="- newer summary"):
            _summarize(client, ("b.txt", b"second", TXT), headers=headers)
        client.post("/api/study/chat", json={"question": "Why?"}, headers=headers)
        assert "- newer summary" in fake_ai.call_args.args[0]

    def test_sessions_do_not_share_notes(self, client, fake_ai):
        _summarize(client, ("a.txt", PHOTOSYNTHESIS, TXT))
        resp = client.post("/api/study/chat", json={"question": "What is this about?"})
        assert resp.status_code == 409
        assert resp.json()["error"] == "NoContextAvailable"


# ── Upload boundary ──────────────────────────────────────────

class TestUploadValidation:
    def test_wrong_extension(self, client, upload_dir, fake_ai):
        resp = _summarize(client, ("run.exe", b"MZ", TXT))
        assert resp.status_code == 400
        assert not upload_dir.exists() or list(upload_dir.iterdir()) == []
        fake_ai.assert_not_called()

    def test_wrong_mime_type(self, client, fake_ai):
        resp = _summarize(client, ("notes.txt", b"text", "image/png"))
        assert resp.status_code == 400

    def test_too_large(self, client, upload_dir, fake_ai):
        from app.services.file_processor import MAX_FILE_SIZE
        resp = _summarize(client, ("ok.txt", b"fine", TXT), ("big.txt", b"a" * (MAX_FILE_SIZE + 1), TXT))
        assert resp.status_code == 413
        assert not upload_dir.exists() or list(upload_dir.iterdir()) == []

    def test_no_files(self, client):
        resp = client.post("/api/study/summarize")
        assert resp.status_code == 422

    def test_formats(self, client):
        resp = client.get("/api/study/upload/formats")
        assert resp.status_code == 200
        assert resp.json()["max_file_size_mb"] == 10


# ── Failure translation ──────────────────────────────────────

class TestErrors:
    def test_empty_file(self, client, upload_dir, fake_ai):
        resp = _summarize(client, ("blank.txt", b"  \n ", TXT))
        assert resp.status_code == 422
        assert resp.json() == {
            "success": False,
            "error": "EmptyContent",
            "detail": "Could not extract text from blank.txt. File may be empty or corrupted.",
        }
        assert list(upload_dir.iterdir()) == []

    def test_corrupt_pdf(self, client, upload_dir, fake_ai):
        resp = _summarize(client, ("broken.pdf", b"not a pdf", "application/pdf"))
        assert resp.status_code == 422
        assert resp.json()["error"] == "ExtractionFailed"
        assert list(upload_dir.iterdir()) == []

    def test_ai_failure(self, client, upload_dir):
        with patch("app.services.ai_service.generate_content", side_effect=RuntimeError("quota")):
            resp = _summarize(client, ("bio.txt", PHOTOSYNTHESIS, TXT))
        assert resp.status_code == 502
        assert resp.json()["error"] == "AIError"
        assert list(upload_dir.iterdir()) == []

    def test_chat_before_summary(self, client, fake_ai):
        resp = client.post("/api/study/chat", json={"question": "Anything?"})
        assert resp.status_code == 409

    def test_empty_question(self, client, fake_ai):
        headers = _session(_summarize(client, ("bio.txt", PHOTOSYNTHESIS, TXT)))
        resp = client.post("/api/study/chat", json={"question": "   "}, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "EmptyQuestion"

    def test_quiz_before_summary(self, client, fake_ai):
        resp = client.post("/api/study/quiz/generate")
        assert resp.status_code == 409
        fake_ai.assert_not_called()

    @pytest.mark.parametrize("reply,error", [
        ("I cannot make a quiz.", "QuizParseError"),
        ('{"quiz": []}', "InvalidQuizSchema"),
    ])
    def test_bad_quiz_reply(self, client, reply, error):
        with patch("app.services.ai_service.generate_content", return_value=reply):
            resp = client.post("/api/study/quiz/generate", json={"note_text": SUMMARY})
        assert resp.status_code == 502
        assert resp.json()["error"] == error

    def test_incomplete_grade(self, client):
        resp = client.post("/api/study/quiz/grade", json={
            "questions": make_quiz(2)["questions"],
            "answers": [0, None],
        })
        assert resp.status_code == 400
        assert resp.json()["error"] == "IncompleteQuizSubmission"


# ── Stateless clients / session endpoints ────────────────────

class TestSession:
    def test_explicit_notes_without_session(self, client, fake_ai):
        resp = client.post("/api/study/chat", json={"question": "What is light?", "note_text": SUMMARY})
        assert resp.status_code == 200
        assert SUMMARY in fake_ai.call_args.args[0]

    def test_session_state(self, client, fake_ai):
        headers = _session(_summarize(client, ("bio.txt", PHOTOSYNTHESIS, TXT)))
        resp = client.get("/api/study/session", headers=headers)
        assert resp.json() == {
            "session_id": headers["X-Session-ID"],
            "has_notes": True,
            "note_length": len(SUMMARY),
        }

    def test_end_session(self, client, fake_ai):
        headers = _session(_summarize(client, ("bio.txt", PHOTOSYNTHESIS, TXT)))
        assert client.delete("/api/study/session", headers=headers).status_code == 204
        resp = client.post("/api/study/chat", json={"question": "Still there?"}, headers=headers)
        assert resp.status_code == 409

    def test_error_response_carries_session_id(self, client, store, fake_ai):
        resp = client.post("/api/study/chat", json={"question": "Anything?"})
        assert resp.status_code == 409
        headers = _session(resp)
        assert len(store) == 1
        assert client.get("/api/study/session", headers=headers).json()["session_id"] == headers["X-Session-ID"]

    def test_retry_after_failed_summary_reuses_session(self, client, store, fake_ai):
        with patch("app.services.ai_service.generate_content", side_effect=RuntimeError("quota")):
            resp = _summarize(client, ("bio.txt", PHOTOSYNTHESIS, TXT))
        assert resp.status_code == 502
        headers = _session(resp)

        resp = _summarize(client, ("bio.txt", PHOTOSYNTHESIS, TXT), headers=headers)
        assert resp.status_code == 200
        assert resp.headers["X-Session-ID"] == headers["X-Session-ID"]
        assert len(store) == 1


class TestExtractText:
    def test_extract_only(self, client, upload_dir, fake_ai):
        resp = client.post("/api/study/upload/extract-text", files={"file": ("bio.txt", PHOTOSYNTHESIS, TXT)})
        assert resp.status_code == 200
        data = resp.json()
        assert data["text"] == PHOTOSYNTHESIS.decode()
        assert data["word_count"] == 5
        fake_ai.assert_not_called()
        assert list(upload_dir.iterdir()) == []


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
