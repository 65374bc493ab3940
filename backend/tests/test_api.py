from fastapi.testclient import TestClient

from conftest import SAMPLE_SUMMARY, SAMPLE_QUIZ, LONG_TEXT
from docquiz.db.models import Base
from docquiz.db.session import engine
from docquiz.main import app, get_ai_client
from docquiz.storage.memory import QUIZ_SESSIONS


def _upload(test_app, headers, *files):
    payload = [("files", f) for f in files]
    return test_app.post("/documents/upload", files=payload, headers=headers)


def _upload_text(test_app, headers, name="biology_notes.txt", text=LONG_TEXT):
    response = _upload(test_app, headers, (name, text.encode(), "text/plain"))
    assert response.status_code == 200
    return response.json()["results"][0]["document_id"]


def _use_fake(fake_openai, *responses):
    client = fake_openai(*responses)
    app.dependency_overrides[get_ai_client] = lambda: client
    return client


def test_health(test_app):
    assert test_app.get("/healthz").json() == {"ok": True}
    assert test_app.head("/").status_code == 200


def test_documents_require_auth(test_app):
    assert test_app.get("/documents").status_code == 401
    assert test_app.get("/documents", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_sign_up_validation(test_app):
    response = test_app.post("/auth/sign-up", json={"email": "bad", "password": "weak", "full_name": "X"})
    assert response.status_code == 400
    assert len(response.json()["detail"]) >= 3


def test_duplicate_sign_up(test_app, auth_headers):
    response = test_app.post("/auth/sign-up", json={
        "email": "ADA@example.com", "password": "Secret123", "full_name": "Ada Lovelace",
    })
    assert response.status_code == 409


def test_sign_in_is_rate_limited(test_app, auth_headers):
    for _ in range(5):
        response = test_app.post("/auth/sign-in", json={"email": "ada@example.com", "password": "Wrong1234"})
        assert response.status_code == 401
    response = test_app.post("/auth/sign-in", json={"email": "ada@example.com", "password": "Wrong1234"})
    assert response.status_code == 429
    assert "Retry-After" in response.headers


def test_sign_out_ends_session(test_app, auth_headers):
    assert test_app.post("/auth/sign-out", headers=auth_headers).status_code == 204
    assert test_app.get("/documents", headers=auth_headers).status_code == 401


def test_upload_and_list(test_app, auth_headers):
    first = _upload_text(test_app, auth_headers, "first.txt")
    second = _upload_text(test_app, auth_headers, "second.txt")

    docs = test_app.get("/documents", headers=auth_headers).json()
    assert [d["document_id"] for d in docs] == [second, first]
    assert docs[0]["processed"] is True
    assert docs[0]["has_summary"] is False

    doc = test_app.get(f"/documents/{first}", headers=auth_headers).json()
    assert doc["content"] == LONG_TEXT
    assert doc["title"] == "first"
    assert doc["summary"] is None


def test_upload_reports_each_file(test_app, auth_headers):
    response = _upload(
        test_app, auth_headers,
        ("good.txt", LONG_TEXT.encode(), "text/plain"),
        ("virus.exe", b"MZ", "application/octet-stream"),
        ("broken.txt", b"\xff\xfe\xfa", "text/plain"),
        ("tiny.txt", b"hello", "text/plain"),
    )
    assert response.status_code == 200
    body = response.json()
    statuses = [r["status"] for r in body["results"]]
    assert statuses == ["saved", "rejected", "failed", "saved"]
    assert body["saved"] == 2
    assert body["results"][2]["error"].startswith("Failed to extract content from broken.txt")
    assert body["results"][3]["content_valid"] is False


def test_upload_rejects_too_many_files(test_app, auth_headers):
    files = [(f"f{i}.txt", LONG_TEXT.encode(), "text/plain") for i in range(11)]
    response = _upload(test_app, auth_headers, *files)
    assert response.status_code == 400
    assert test_app.get("/documents", headers=auth_headers).json() == []


def test_documents_are_scoped_to_owner(test_app, auth_headers):
    doc_id = _upload_text(test_app, auth_headers)
    test_app.post("/auth/sign-up", json={"email": "bob@example.com", "password": "Secret123", "full_name": "Bob"})
    token = test_app.post("/auth/sign-in", json={"email": "bob@example.com", "password": "Secret123"}).json()["token"]
    other = {"Authorization": f"Bearer {token}"}
    assert test_app.get(f"/documents/{doc_id}", headers=other).status_code == 404
    assert test_app.get("/documents", headers=other).json() == []


def test_summary_not_yet_available(test_app, auth_headers):
    doc_id = _upload_text(test_app, auth_headers)
    body = test_app.get(f"/documents/{doc_id}/summary", headers=auth_headers).json()
    assert body["available"] is False
    assert body["sections"]["detailed"] == "Detailed summary not available"
    assert body["sections"]["key_points"] == ["Key points not available"]


def test_generate_then_take_quiz(test_app, auth_headers, fake_openai):
    doc_id = _upload_text(test_app, auth_headers)
    _use_fake(fake_openai, SAMPLE_SUMMARY, SAMPLE_QUIZ)

    response = test_app.post(f"/documents/{doc_id}/generate", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["question_count"] == 3

    summary = test_app.get(f"/documents/{doc_id}/summary", headers=auth_headers).json()
    assert summary["available"] is True
    assert summary["sections"]["brief"] == "Plants turn light into sugar."
    assert summary["sections"]["main_topics"] == "Photosynthesis, Chloroplasts, Energy"
    assert summary["sections"]["difficulty"] == "beginner"

    quiz = test_app.get(f"/documents/{doc_id}/quiz", headers=auth_headers).json()
    assert [q["type"] for q in quiz["questions"]] == ["mcq", "fill", "short"]

    session = test_app.post(f"/documents/{doc_id}/quiz-sessions", headers=auth_headers).json()
    sid = session["session_id"]
    assert session["total_questions"] == 3
    assert session["status"] == "in_progress"

    state = test_app.get(f"/quiz-sessions/{sid}", headers=auth_headers).json()
    assert state["question"]["options"] == ["Chlorophyll", "Keratin", "Melanin", "Hemoglobin"]
    assert "correct_answer" not in state["question"]

    assert test_app.post(f"/quiz-sessions/{sid}/advance", headers=auth_headers).status_code == 400
    assert test_app.post(f"/quiz-sessions/{sid}/retreat", headers=auth_headers).status_code == 400

    for answer in ("chlorophyll", " Oxygen ", "fructose"):
        test_app.post(f"/quiz-sessions/{sid}/select", json={"answer": answer}, headers=auth_headers)
        response = test_app.post(f"/quiz-sessions/{sid}/advance", headers=auth_headers)
        assert response.status_code == 200

    state = response.json()
    assert state["status"] == "completed"
    assert state["question"] is None

    result = test_app.get(f"/quiz-sessions/{sid}/result", headers=auth_headers).json()
    assert result["score"] == 2
    assert result["percentage"] == 67
    assert result["message_tier"] == "low"
    assert result["color_tier"] == "yellow"

    assert test_app.post(f"/quiz-sessions/{sid}/advance", headers=auth_headers).status_code == 409

    state = test_app.post(f"/quiz-sessions/{sid}/reset", headers=auth_headers).json()
    assert state["status"] == "in_progress"
    assert state["current_index"] == 0
    assert test_app.get(f"/quiz-sessions/{sid}/result", headers=auth_headers).status_code == 400


def test_regenerate_replaces_quiz(test_app, auth_headers, fake_openai):
    doc_id = _upload_text(test_app, auth_headers)
    one_question = {"questions": [SAMPLE_QUIZ["questions"][2]]}
    _use_fake(fake_openai, SAMPLE_SUMMARY, SAMPLE_QUIZ, SAMPLE_SUMMARY, one_question)

    test_app.post(f"/documents/{doc_id}/generate", headers=auth_headers)
    test_app.post(f"/documents/{doc_id}/generate", headers=auth_headers)

    quiz = test_app.get(f"/documents/{doc_id}/quiz", headers=auth_headers).json()
    assert len(quiz["questions"]) == 1


def test_generation_failure_marks_processed(test_app, auth_headers, fake_openai):
    doc_id = _upload_text(test_app, auth_headers, name="short.txt", text="hello there")
    _use_fake(fake_openai)
    response = test_app.post(f"/documents/{doc_id}/generate", headers=auth_headers)
    assert response.status_code == 422

    doc_id = _upload_text(test_app, auth_headers)
    _use_fake(fake_openai, "not json", "not json")
    response = test_app.post(f"/documents/{doc_id}/generate", headers=auth_headers)
    assert response.status_code == 502
    assert "parse" in response.json()["detail"]

    doc = test_app.get(f"/documents/{doc_id}", headers=auth_headers).json()
    assert doc["processed"] is True
    assert doc["summary"] is None
    assert test_app.get(f"/documents/{doc_id}/quiz", headers=auth_headers).status_code == 404


def test_quiz_session_needs_quiz(test_app, auth_headers):
    doc_id = _upload_text(test_app, auth_headers)
    assert test_app.post(f"/documents/{doc_id}/quiz-sessions", headers=auth_headers).status_code == 400
    assert test_app.get("/quiz-sessions/unknown", headers=auth_headers).status_code == 404


def test_malformed_summary_still_marks_processed(test_app, auth_headers, fake_openai):
    doc_id = _upload_text(test_app, auth_headers)
    _use_fake(fake_openai, {**SAMPLE_SUMMARY, "keyPoints": 5}, SAMPLE_QUIZ)

    response = test_app.post(f"/documents/{doc_id}/generate", headers=auth_headers)
    assert response.status_code == 502
    doc = test_app.get(f"/documents/{doc_id}", headers=auth_headers).json()
    assert doc["processed"] is True
    assert doc["summary"] is None


def test_regeneration_without_questions_keeps_stored_quiz(test_app, auth_headers, fake_openai):
    doc_id = _upload_text(test_app, auth_headers)
    _use_fake(fake_openai, SAMPLE_SUMMARY, SAMPLE_QUIZ, SAMPLE_SUMMARY, {"questions": []})

    assert test_app.post(f"/documents/{doc_id}/generate", headers=auth_headers).status_code == 200
    response = test_app.post(f"/documents/{doc_id}/generate", headers=auth_headers)
    assert response.status_code == 502

    quiz = test_app.get(f"/documents/{doc_id}/quiz", headers=auth_headers).json()
    assert len(quiz["questions"]) == 3
    assert test_app.post(f"/documents/{doc_id}/quiz-sessions", headers=auth_headers).status_code == 200


def test_sign_out_clears_quiz_sessions(test_app, auth_headers, fake_openai):
    doc_id = _upload_text(test_app, auth_headers)
    _use_fake(fake_openai, SAMPLE_SUMMARY, SAMPLE_QUIZ)
    test_app.post(f"/documents/{doc_id}/generate", headers=auth_headers)
    for _ in range(2):
        test_app.post(f"/documents/{doc_id}/quiz-sessions", headers=auth_headers)
    assert len(QUIZ_SESSIONS) == 2

    test_app.post("/auth/sign-out", headers=auth_headers)
    assert QUIZ_SESSIONS == {}


def test_tables_are_created_on_startup(db):
    Base.metadata.drop_all(bind=engine)
    with TestClient(app) as client:
        response = client.post("/auth/sign-up", json={
            "email": "grace@example.com", "password": "Secret123", "full_name": "Grace Hopper",
        })
    assert response.status_code == 201
