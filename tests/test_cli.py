"""Tests for trackscout.cli."""

import json

import numpy as np
import pytest

from trackscout.cli import main

pytestmark = pytest.mark.unit


@pytest.fixture
def embeddings_dir(tmp_path):
    for name, vector in {"A": [1.0, 0.0], "B": [0.0, 1.0], "C": [0.9, 0.1]}.items():
        np.save(tmp_path / f"{name}.npy", np.array(vector))
    return tmp_path


class TestSimilarCommand:
    def test_json_output(self, embeddings_dir, capsys):
        code = main(["similar", "--embeddings", str(embeddings_dir), "--track", "A", "--threshold", "0.5", "--json"])

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert [r["trackId"] for r in payload["results"]] == ["C"]

    def test_text_output(self, embeddings_dir, capsys):
        code = main(["similar", "--embeddings", str(embeddings_dir), "--track", "A", "--metric", "manhattan", "--threshold", "3"])

        assert code == 0
        out = capsys.readouterr().out
        assert "distance=" in out
        assert out.index(" C ") < out.index(" B ")

    def test_unknown_track_fails(self, embeddings_dir, capsys):
        code = main(["similar", "--embeddings", str(embeddings_dir), "--track", "Z"])
        assert code == 1
        assert "Z" in capsys.readouterr().err

    def test_bad_metric_fails(self, embeddings_dir, capsys):
        code = main(["similar", "--embeddings", str(embeddings_dir), "--track", "A", "--metric", "quantum"])
        assert code == 1
        assert "Unsupported metric" in capsys.readouterr().err

    def test_missing_directory_fails(self, tmp_path):
        assert main(["similar", "--embeddings", str(tmp_path / "nope"), "--track", "A"]) == 1


class TestOtherCommands:
    def test_validate(self, capsys):
        assert main(["validate"]) == 0
        assert "valid" in capsys.readouterr().out

    def test_no_command_prints_help(self):
        assert main([]) == 1
