import pytest

from app.audio import UNAVAILABLE, ToolResult, Transcoder
from app.errors import TranscodeError


def test_missing_binary_is_unavailable(tmp_path):
    t = Transcoder.locate("definitely-not-ffmpeg-xyz")
    assert not t.available
    assert t.convert(tmp_path / "in.m4a", tmp_path / "out.wav") is UNAVAILABLE


def test_convert_targets_16k_mono_pcm(tmp_path, ffmpeg):
    fake, t = ffmpeg()
    src = tmp_path / "in.m4a"
    src.write_bytes(b"aac")
    out = t.convert(src, tmp_path / "out.wav")
    assert out == tmp_path / "out.wav"
    args = fake.calls[0]
    assert args[args.index("-ac") + 1] == "1"
    assert args[args.index("-ar") + 1] == "16000"
    assert args[args.index("-acodec") + 1] == "pcm_s16le"


def test_nonzero_exit_is_a_distinct_failure(tmp_path, ffmpeg):
    _, t = ffmpeg(convert_rc=1)
    src = tmp_path / "in.m4a"
    src.write_bytes(b"aac")
    with pytest.raises(TranscodeError) as exc:
        t.convert(src, tmp_path / "out.wav")
    assert exc.value.returncode == 1
    assert "conversion failed" in exc.value.output


def test_binary_vanishing_at_exec_is_unavailable(tmp_path):
    def runner(args):
        raise FileNotFoundError(args[0])

    t = Transcoder("/gone/ffmpeg", runner=runner)
    assert t.run(["-version"]) is UNAVAILABLE


def test_unavailable_is_falsy_singleton():
    from app.audio import Unavailable

    assert Unavailable() is UNAVAILABLE
    assert not UNAVAILABLE
    assert ToolResult(0).ok and not ToolResult(2).ok


def test_binary_that_cannot_be_executed_is_unavailable(tmp_path):
    def runner(args):
        raise PermissionError(13, "Permission denied", args[0])

    t = Transcoder("/opt/ffmpeg", runner=runner)
    assert t.run(["-version"]) is UNAVAILABLE
    assert t.convert(tmp_path / "in.m4a", tmp_path / "out.wav") is UNAVAILABLE
