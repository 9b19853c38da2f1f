"""Tests for repo_converter.conversion_log."""

import json

from repo_converter.conversion_log import ConversionLog


class TestConversionLog:
    def test_flushes_after_every_entry(self, tmp_path):
        path = tmp_path / "logs" / "run-conversion-log.json"
        log = ConversionLog("run-1", "convert", "https://example.com/r.git", path, target="Go")
        assert json.loads(path.read_text(encoding="utf-8"))["status"] == "running"

        log.record("wrote_file", source_file="a.py", target_file="a.go")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["entries"][0]["action"] == "wrote_file"
        assert data["entries"][0]["sequence"] == 1
        assert log.count("wrote_file") == 1

    def test_finalize_and_markdown(self, tmp_path):
        log = ConversionLog("run-2", "convert-framework", "url", tmp_path / "log.json")
        log.record("cloned", detail="url")
        log.finalize("failed")
        data = json.loads((tmp_path / "log.json").read_text(encoding="utf-8"))
        assert data["status"] == "failed"
        assert data["completed_at"]

        md = log.export_markdown(tmp_path / "log.md").read_text(encoding="utf-8")
        assert "**Status:** failed" in md
        assert "`cloned`" in md

    def test_empty_fields_are_omitted(self, tmp_path):
        log = ConversionLog("run-3", "convert", "url", tmp_path / "log.json")
        log.record("discovered")
        [entry] = log.entries
        assert set(entry) == {"sequence", "timestamp", "action"}
