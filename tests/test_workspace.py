import pytest

from app.workspace import acquire


def test_files_removed_on_normal_exit(tmp_path):
    with acquire("rec1", base_dir=tmp_path) as ws:
        p = ws.path("audio.m4a")
        p.write_bytes(b"x")
        root = ws.root
    assert not p.exists()
    assert not root.exists()


def test_files_removed_when_run_aborts(tmp_path):
    with pytest.raises(RuntimeError):
        with acquire("rec1", base_dir=tmp_path) as ws:
            ws.path("audio.m4a").write_bytes(b"x")
            (ws.root / "audio.part-000.m4a").write_bytes(b"y")
            root = ws.root
            raise RuntimeError("time limit")
    assert not root.exists()


def test_concurrent_runs_for_same_id_do_not_share(tmp_path):
    with acquire("rec1", base_dir=tmp_path) as a, acquire("rec1", base_dir=tmp_path) as b:
        assert a.root != b.root


def test_adopt_rejects_outside_paths(tmp_path):
    outside = tmp_path / "elsewhere.wav"
    outside.write_bytes(b"")
    with acquire("rec1", base_dir=tmp_path / "work") as ws:
        with pytest.raises(ValueError):
            ws.adopt(outside)
    assert outside.exists()
