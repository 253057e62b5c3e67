"""Tests for keypoint recording and replay."""

import json

import pytest

from openarcade.pose import BodyPart, Frame, Point, make_person
from openarcade.recorder import FramePlayer, FrameRecorder, RecordedFrame


def make_frame(x=10.0, y=20.0):
    return Frame(persons=[make_person({BodyPart.LEFT_WRIST: (x, y)}, score=0.9)], fps=30.0)


class TestRecorder:
    def test_record_and_count(self):
        rec = FrameRecorder()
        rec.start()
        for i in range(10):
            rec.add_frame(make_frame(), timestamp=i * 33.0)
        assert rec.stop() == 10
        assert rec.duration == pytest.approx(0.297)

    def test_not_recording_ignores_frames(self):
        rec = FrameRecorder()
        rec.add_frame(make_frame())
        assert rec.frame_count == 0
        assert not rec.is_recording

    def test_default_timestamp_is_relative(self):
        rec = FrameRecorder()
        rec.start()
        rec.add_frame(make_frame())
        assert 0.0 <= rec.to_dict()["frames"][0]["timestamp"] < 1000.0

    def test_save_and_load(self, tmp_path):
        rec = FrameRecorder(detect_size=(1280, 720))
        rec.start()
        rec.add_frame(make_frame(1, 2), timestamp=0.0)
        rec.add_frame(Frame(), timestamp=33.0)
        rec.add_frame(make_frame(3, 4), timestamp=66.0)
        rec.stop()

        path = tmp_path / "session.json"
        rec.save(path)

        player = FramePlayer.load(path)
        assert player.frame_count == 3
        assert player.detect_size == (1280, 720)
        assert player.duration == pytest.approx(0.066)

        frames = list(player.play())
        assert [f.timestamp for f in frames] == [0.0, 33.0, 66.0]
        assert frames[1].persons == []
        assert frames[2].persons[0].coordinate(BodyPart.LEFT_WRIST) == Point(3.0, 4.0)
        assert frames[0].fps == 30.0

    def test_file_layout(self, tmp_path):
        rec = FrameRecorder()
        rec.start()
        rec.add_frame(make_frame(), timestamp=5.0)
        path = tmp_path / "s.json"
        rec.save(path)
        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert data["frame_count"] == 1
        assert data["detect_size"] is None
        assert data["frames"][0]["persons"][0]["keypoints"][9][0] == "left_wrist"


class TestPlayer:
    def test_version_mismatch(self, tmp_path):
        path = tmp_path / "old.json"
        path.write_text(json.dumps({"version": 99, "frames": []}))
        with pytest.raises(ValueError):
            FramePlayer.load(path)

    def test_realtime_yields_all_frames(self):
        frames = [RecordedFrame(timestamp=i * 10.0, persons=[]) for i in range(5)]
        played = list(FramePlayer(frames).play_realtime(speed=100.0))
        assert len(played) == 5

    def test_empty(self):
        player = FramePlayer([])
        assert player.duration == 0.0
        assert list(player.play_realtime()) == []

    def test_unknown_body_part_is_value_error(self, tmp_path):
        path = tmp_path / "bad.json"
        frame = {"timestamp": 0.0, "persons": [{"id": 0, "keypoints": [["tail", 1, 2, 0.9]]}]}
        path.write_text(json.dumps({"version": 1, "frames": [frame]}))
        with pytest.raises(ValueError, match="bad.json"):
            FramePlayer.load(path)

    def test_missing_timestamp_is_value_error(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"version": 1, "frames": [{"persons": []}]}))
        with pytest.raises(ValueError):
            FramePlayer.load(path)
