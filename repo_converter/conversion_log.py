"""
Conversion Log
==============
Real-time, append-only record of every action taken during a run.
Persists to a JSON file after every entry and can export a Markdown summary.

The log is an audit trail only; nothing reads it back to resume a run.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class ConversionLog:
    """
    Single-run log of conversion actions.

    Each entry records:
        sequence      – monotonic counter
        timestamp     – ISO-8601 UTC
        action        – cloned | discovered | converting | rate_limited |
                        wrote_file | wrote_manifest |
                        skipped_collision | failed
        source_file   – (optional) path relative to the workspace
        target_file   – (optional) path relative to the output tree
        detail        – (optional) free text
    """

    def __init__(
        self,
        run_id: str,
        pipeline: str,
        repo_url: str,
        log_path: str | Path,
        target: str = "",
    ) -> None:
        self.run_id   = run_id
        self.pipeline = pipeline
        self.repo_url = repo_url
        self.target   = target
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        self._entries: list[dict[str, Any]] = []
        self._seq: int = 0
        self._status: str = "running"
        self._started_at: str = datetime.now(timezone.utc).isoformat()
        self._completed_at: str | None = None

        self._flush()   # initialise file

    # ------------------------------------------------------------------
    # Recording API
    # ------------------------------------------------------------------

    def record(
        self,
        action: str,
        *,
        source_file: str | None = None,
        target_file: str | None = None,
        detail: str | None = None,
    ) -> None:
        self._seq += 1
        entry: dict[str, Any] = {
            "sequence":   self._seq,
            "timestamp":  datetime.now(timezone.utc).isoformat(),
            "action":     action,
        }
        if source_file:  entry["source_file"] = source_file
        if target_file:  entry["target_file"] = target_file
        if detail:       entry["detail"]      = detail

        self._entries.append(entry)
        self._flush()
        logger.debug("[LOG #%d] %s -- %s", self._seq, action, source_file or target_file or "")

    def finalize(self, status: str = "completed") -> None:
        self._status       = status
        self._completed_at = datetime.now(timezone.utc).isoformat()
        self._flush()
        logger.info("Conversion log finalised -- status: %s", status)

    @property
    def entries(self) -> list[dict[str, Any]]:
        return list(self._entries)

    def count(self, action: str) -> int:
        return sum(1 for e in self._entries if e["action"] == action)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "run_id":       self.run_id,
            "pipeline":     self.pipeline,
            "repo_url":     self.repo_url,
            "target":       self.target,
            "started_at":   self._started_at,
            "completed_at": self._completed_at,
            "status":       self._status,
            "entries":      self._entries,
        }

    def export_markdown(self, output_path: str | Path) -> Path:
        out = Path(output_path)
        out.parent.mkdir(parents=True, exist_ok=True)

        lines = [
            f"# Conversion Log -- {self.repo_url}",
            f"**Run ID:** `{self.run_id}`  ",
            f"**Pipeline:** `{self.pipeline}`  ",
            f"**Target:** {self.target or 'N/A'}  ",
            f"**Started:** {self._started_at}  ",
            f"**Completed:** {self._completed_at or 'N/A'}  ",
            f"**Status:** {self._status}  ",
            "",
            "---",
            "",
            "| # | Time | Action | Source | Target | Notes |",
            "|---|------|--------|--------|--------|-------|",
        ]
        for e in self._entries:
            ts     = e.get("timestamp", "")[:19].replace("T", " ")
            src    = e.get("source_file", "")
            tgt    = e.get("target_file", "")
            notes  = e.get("detail", "")
            lines.append(f"| {e['sequence']} | {ts} | `{e['action']}` | `{src}` | `{tgt}` | {notes} |")

        out.write_text("\n".join(lines), encoding="utf-8")
        logger.info("Conversion log markdown exported to: %s", out)
        return out

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _flush(self) -> None:
        """Write the full log to disk after every change."""
        with open(self.log_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
