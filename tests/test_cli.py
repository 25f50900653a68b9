"""Tests for the gesture-trainer command line."""

import json
import math

from typer.testing import CliRunner

from gesture_trainer.cli import app
from gesture_trainer.frames import Frame, Hand
from gesture_trainer.recorder import FrameRecorder

runner = CliRunner()


def swipe(t0, n=10, dt=0.02):
    frames = []
    for i in range(n):
        s = i / (n - 1)
        hand = Hand(
            palm_position=(-100.0 + 200.0 * s, 200.0 + 30.0 * math.sin(math.pi * s), 0.0),
            palm_velocity=(800.0, 0.0, 0.0),
        )
        frames.append(Frame(hands=[hand], timestamp=t0 + i * dt))
    frames.append(Frame(hands=[], timestamp=t0 + n * dt))
    return frames


def write_session(path, frames):
    rec = FrameRecorder()
    rec.start()
    for frame in frames:
        rec.add_frame(frame)
    rec.stop()
    rec.save(path)
    return path


class TestCli:
    def test_strategies(self):
        result = runner.invoke(app, ["strategies"])
        assert result.exit_code == 0
        assert "geometric" in result.output
        assert "cross-correlation" in result.output
        assert "high-resolution" in result.output

    def test_train_recognize_show(self, tmp_path):
        session = write_session(tmp_path / "swipe.json", swipe(0.0) + swipe(2.0))
        gestures = tmp_path / "gestures.json"

        result = runner.invoke(app, ["train", "SWIPE", str(session), "-g", str(gestures), "--seed", "1"])
        assert result.exit_code == 0, result.output
        assert gestures.exists()
        assert json.loads(gestures.read_text())["gestures"][0]["name"] == "SWIPE"

        result = runner.invoke(app, ["recognize", str(session), "-g", str(gestures)])
        assert result.exit_code == 0, result.output
        assert result.output.count("SWIPE") == 2
        assert "2/2" in result.output

        result = runner.invoke(app, ["show", str(gestures)])
        assert result.exit_code == 0
        assert "SWIPE" in result.output

    def test_train_existing_needs_replace(self, tmp_path):
        session = write_session(tmp_path / "swipe.json", swipe(0.0))
        gestures = tmp_path / "gestures.json"
        args = ["train", "SWIPE", str(session), "-g", str(gestures)]

        assert runner.invoke(app, args).exit_code == 0
        assert runner.invoke(app, args).exit_code == 1
        assert runner.invoke(app, args + ["--replace"]).exit_code == 0

    def test_train_incomplete_session(self, tmp_path):
        session = write_session(tmp_path / "idle.json", [Frame(timestamp=i * 0.02) for i in range(20)])
        result = runner.invoke(app, ["train", "SWIPE", str(session), "-g", str(tmp_path / "g.json")])
        assert result.exit_code == 1
        assert not (tmp_path / "g.json").exists()

    def test_unknown_variant(self, tmp_path):
        session = write_session(tmp_path / "swipe.json", swipe(0.0))
        result = runner.invoke(app, ["train", "SWIPE", str(session), "--variant", "nope"])
        assert result.exit_code == 1

    def test_missing_session(self, tmp_path):
        result = runner.invoke(app, ["train", "SWIPE", str(tmp_path / "nope.json"), "-g", str(tmp_path / "g.json")])
        assert result.exit_code == 1

    def test_show_missing_file(self, tmp_path):
        result = runner.invoke(app, ["show", str(tmp_path / "nope.json")])
        assert result.exit_code == 1

    def test_config_file(self, tmp_path):
        config = tmp_path / "trainer.yml"
        config.write_text("training_gestures: 2\n")
        session = write_session(tmp_path / "swipe.json", swipe(0.0))
        result = runner.invoke(
            app, ["train", "SWIPE", str(session), "-g", str(tmp_path / "g.json"), "--config", str(config)]
        )
        # one demonstration is not enough for two samples
        assert result.exit_code == 1
        assert "1/2" in result.output

    def test_train_malformed_gestures_file(self, tmp_path):
        session = write_session(tmp_path / "swipe.json", swipe(0.0))
        gestures = tmp_path / "gestures.json"
        gestures.write_text('{"gestures": [{"name": "SWIPE"}]}')
        result = runner.invoke(app, ["train", "SWIPE", str(session), "-g", str(gestures)])
        assert result.exit_code == 1
        assert "Could not load gestures" in result.output

    def test_malformed_session(self, tmp_path):
        gestures = tmp_path / "gestures.json"
        gestures.write_text('{"gestures": []}')
        for i, text in enumerate(["not json", '{"version": 1}', "[1, 2]"]):
            session = tmp_path / f"bad{i}.json"
            session.write_text(text)
            result = runner.invoke(app, ["recognize", str(session), "-g", str(gestures)])
            assert result.exit_code == 1, text
            assert "Could not load session" in result.output
