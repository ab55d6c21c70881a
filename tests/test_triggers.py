from app.db import SessionLocal
from app.models import AiJob, Recording, TranscriptStatus


def _set_status(rid, value, commit=True):
    with SessionLocal() as db:
        rec = db.get(Recording, rid)
        rec.transcript_status = value
        if commit:
            db.commit()
        else:
            db.flush()
            db.rollback()


def test_status_change_fires_after_commit(make_recording, dispatcher):
    rid = make_recording()
    _set_status(rid, TranscriptStatus.pending)
    assert dispatcher.events == [("recording_updated", rid, "none", "pending")]


def test_no_op_write_does_not_fire(make_recording, dispatcher):
    rid = make_recording(transcript_status=TranscriptStatus.pending)
    _set_status(rid, TranscriptStatus.pending)
    assert dispatcher.events == []


def test_rolled_back_write_does_not_fire(make_recording, dispatcher):
    rid = make_recording()
    _set_status(rid, TranscriptStatus.pending, commit=False)
    assert dispatcher.events == []
    _set_status(rid, TranscriptStatus.pending)
    assert dispatcher.events == [("recording_updated", rid, "none", "pending")]


def test_other_fields_do_not_fire(make_recording, dispatcher):
    rid = make_recording()
    with SessionLocal() as db:
        db.get(Recording, rid).filename = "renamed.m4a"
        db.commit()
    assert dispatcher.events == []


def test_job_creation_fires(dispatcher):
    with SessionLocal() as db:
        job = AiJob(type="notes", recording_id="r1", owner_id="user-1")
        db.add(job)
        db.commit()
        job_id = job.id
    assert dispatcher.events == [("job_created", job_id)]


def test_recording_creation_does_not_fire(make_recording, dispatcher):
    make_recording(transcript_status=TranscriptStatus.pending)
    assert dispatcher.events == []
