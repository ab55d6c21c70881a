import os
import tempfile
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="lecture-pipeline-tests-"))
os.environ["DB_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["TMP_DIR"] = str(_TMP / "work")
os.environ["OPENAI_API_KEY"] = ""

import pytest

from app import triggers
from app.audio import ToolResult, Transcoder
from app.db import Base, SessionLocal, engine
from app.models import Recording


class FakeBlobStore:
    url = "https://acct.blob.core.windows.net/media"

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}

    def exists(self, key):
        return key in self.blobs

    def download(self, key):
        return self.blobs[key]

    def download_to_file(self, key, target):
        Path(target).write_bytes(self.blobs[key])
        return target

    def upload(self, key, data, content_type):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.blobs[key] = data
        self.content_types[key] = content_type
        return key


class RecordingDispatcher:
    def __init__(self):
        self.events = []

    def recording_updated(self, recording_id, before, after):
        self.events.append(("recording_updated", recording_id, before, after))

    def job_created(self, job_id):
        self.events.append(("job_created", job_id))


class FakeFfmpeg:
    """Stands in for the ffmpeg process: writes the files a real run would."""

    def __init__(self, parts=1, convert_rc=0, segment_rc=0):
        self.parts = parts
        self.convert_rc = convert_rc
        self.segment_rc = segment_rc
        self.calls = []

    def __call__(self, args):
        args = list(args)
        self.calls.append(args)
        if "segment" in args:
            if self.segment_rc:
                return ToolResult(self.segment_rc, "segment muxer failed")
            pattern = args[-1]
            for i in range(self.parts):
                Path(pattern % i).write_bytes(f"part{i}".encode())
            return ToolResult(0)
        if self.convert_rc:
            return ToolResult(self.convert_rc, "conversion failed")
        src, dst = Path(args[args.index("-i") + 1]), Path(args[-1])
        dst.write_bytes(b"WAV:" + src.read_bytes())
        return ToolResult(0)


@pytest.fixture(autouse=True)
def db_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def dispatcher():
    d = RecordingDispatcher()
    previous = triggers.set_dispatcher(d)
    yield d
    triggers.set_dispatcher(previous)


@pytest.fixture
def store():
    return FakeBlobStore()


@pytest.fixture
def make_recording():
    def _make(**fields):
        fields.setdefault("owner_id", "user-1")
        fields.setdefault("filename", "lecture.m4a")
        with SessionLocal() as db:
            rec = Recording(**fields)
            db.add(rec)
            db.commit()
            return rec.id
    return _make


@pytest.fixture
def fetch():
    def _fetch(model, row_id):
        with SessionLocal() as db:
            return db.get(model, row_id)
    return _fetch


@pytest.fixture
def no_ffmpeg():
    return Transcoder(None)


@pytest.fixture
def ffmpeg():
    def _make(**kwargs):
        fake = FakeFfmpeg(**kwargs)
        return fake, Transcoder("/usr/bin/ffmpeg", runner=fake)
    return _make
