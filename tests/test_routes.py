import json

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models import AiJob, ArtifactStatus, JobStatus, Recording, TranscriptStatus
from app.permissions import get_current_user_id
from app.storage import get_blob_store


@pytest.fixture
def client(store):
    app.dependency_overrides[get_blob_store] = lambda: store
    app.dependency_overrides[get_current_user_id] = lambda: "user-1"
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _as(user_id):
    app.dependency_overrides[get_current_user_id] = lambda: user_id


def test_transcript_text(client, make_recording, store):
    rid = make_recording(transcript_status=TranscriptStatus.done)
    store.blobs[f"transcripts/{rid}.txt"] = "[00:00–10:00]\nhello".encode()
    r = client.get(f"/v1/recordings/{rid}/transcript")
    assert r.status_code == 200
    assert r.json() == {"text": "[00:00–10:00]\nhello"}


def test_transcript_requires_sign_in(client, make_recording):
    rid = make_recording()
    del app.dependency_overrides[get_current_user_id]
    r = client.get(f"/v1/recordings/{rid}/transcript")
    assert r.status_code == 401


def test_transcript_not_found(client, make_recording):
    assert client.get("/v1/recordings/nope/transcript").status_code == 404
    rid = make_recording()
    r = client.get(f"/v1/recordings/{rid}/transcript")
    assert r.status_code == 404
    assert r.json()["detail"] == "Transcript not found for this recording."


def test_other_users_are_rejected_before_any_data(client, make_recording, store):
    rid = make_recording(summary_status=ArtifactStatus.done, summary_path="ai/x/summary/j.json")
    store.blobs[f"transcripts/{rid}.txt"] = b"secret"
    store.blobs["ai/x/summary/j.json"] = b'{"abstract": "secret"}'
    _as("intruder")
    for url in (f"/v1/recordings/{rid}/transcript", f"/v1/recordings/{rid}/outputs/summary"):
        r = client.get(url)
        assert r.status_code == 403
        assert "secret" not in r.text


def test_ai_output(client, make_recording, store):
    key = "ai/r/quiz/j1.json"
    rid = make_recording(quiz_status=ArtifactStatus.done, quiz_path=key, quiz_preview="Questions: 0")
    store.blobs[key] = json.dumps({"questions": []}).encode()
    r = client.get(f"/v1/recordings/{rid}/outputs/quiz")
    assert r.status_code == 200
    assert r.json() == {
        "type": "quiz",
        "recordingId": rid,
        "path": key,
        "preview": "Questions: 0",
        "data": {"questions": []},
    }


def test_ai_output_unreadable_json_is_returned_raw(client, make_recording, store):
    key = "ai/r/notes/j1.json"
    rid = make_recording(notes_path=key)
    store.blobs[key] = b"not json"
    assert client.get(f"/v1/recordings/{rid}/outputs/notes").json()["data"] == {"raw": "not json"}


def test_ai_output_errors(client, make_recording):
    rid = make_recording()
    assert client.get(f"/v1/recordings/{rid}/outputs/essay").status_code == 400
    r = client.get(f"/v1/recordings/{rid}/outputs/notes")
    assert r.status_code == 404
    assert r.json()["detail"] == "No notes output available."
    rid = make_recording(notes_path="ai/gone.json")
    assert client.get(f"/v1/recordings/{rid}/outputs/notes").status_code == 404


def test_request_transcript_fires_trigger(client, make_recording, dispatcher, fetch):
    rid = make_recording()
    r = client.post(f"/v1/recordings/{rid}/transcript")
    assert r.status_code == 202
    assert fetch(Recording, rid).transcript_status is TranscriptStatus.pending
    assert dispatcher.events == [("recording_updated", rid, "none", "pending")]


def test_request_transcript_while_running_conflicts(client, make_recording, dispatcher):
    rid = make_recording(transcript_status=TranscriptStatus.processing)
    assert client.post(f"/v1/recordings/{rid}/transcript").status_code == 409
    assert dispatcher.events == []


def test_create_ai_job(client, make_recording, dispatcher, fetch):
    rid = make_recording()
    r = client.post("/v1/ai-jobs", json={"recordingId": rid, "type": "notes"})
    assert r.status_code == 201
    job_id = r.json()["job_id"]
    job = fetch(AiJob, job_id)
    assert (job.type, job.recording_id, job.status) == ("notes", rid, JobStatus.pending)
    assert fetch(Recording, rid).notes_status is ArtifactStatus.pending
    assert dispatcher.events == [("job_created", job_id)]


def test_create_ai_job_validation(client, make_recording):
    rid = make_recording()
    assert client.post("/v1/ai-jobs", json={"recordingId": rid, "type": "essay"}).status_code == 400
    _as("intruder")
    assert client.post("/v1/ai-jobs", json={"recordingId": rid, "type": "quiz"}).status_code == 403
