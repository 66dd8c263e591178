import json
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional


class PlanningLogger:
    """JSON-lines trace of extraction and planning requests, one file per session."""

    def __init__(self, log_dir: str = "logs"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self.log_file = self.log_dir / f"trace_{self.session_id}.jsonl"

        self.current_request_id: Optional[str] = None
        self._request_started: Optional[float] = None

        self._write_entry({"event": "session_start", "session_id": self.session_id})

    def start_request(self, operation: str, content: Any = None) -> str:
        """Open a request; later steps are tagged with its id."""
        self.current_request_id = datetime.now().strftime("%H%M%S_%f")
        self._request_started = time.perf_counter()
        self._write_entry({
            "event": "request_start",
            "request_id": self.current_request_id,
            "operation": operation,
            "content": content,
        })
        return self.current_request_id

    def log_step(self, step_type: str, content: Any, metadata: Optional[Dict[str, Any]] = None):
        """Record one step of the open request (message classification, planner dispatch)."""
        entry = {
            "event": "step",
            "request_id": self.current_request_id,
            "step_type": step_type,
            "content": content,
        }
        if metadata:
            entry["metadata"] = metadata
        self._write_entry(entry)

    def log_decision(self, decision: str, reason: str):
        self.log_step("decision", {"action": decision, "reason": reason})

    def end_request(self, result: Any = None):
        """Close the open request with its outcome and how long it took."""
        elapsed = None
        if self._request_started is not None:
            elapsed = round((time.perf_counter() - self._request_started) * 1000, 3)

        self._write_entry({
            "event": "request_end",
            "request_id": self.current_request_id,
            "content": result,
            "duration_ms": elapsed,
        })
        self.current_request_id = None
        self._request_started = None

    def _write_entry(self, entry: Dict[str, Any]):
        entry.setdefault("timestamp", datetime.now().isoformat())
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")
