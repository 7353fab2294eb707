from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from agent_teams.utils.run_log import utc_now_iso


def validate_relative_path(path: str) -> str:
    """Return the normalized relative path, or raise ValueError if it could escape the workspace."""
    v = path.strip()
    if not v:
        raise ValueError("path must not be empty")
    vv = v.replace("\\", "/")
    if "\x00" in vv:
        raise ValueError(f"path contains illegal characters: {path!r}")
    if vv.startswith("/"):
        raise ValueError(f"path must be relative: {path!r}")
    if ":" in vv.split("/")[0]:
        raise ValueError(f"path must not carry a drive letter or scheme: {path!r}")
    parts = [p for p in vv.split("/") if p and p != "."]
    if any(p == ".." for p in parts):
        raise ValueError(f"path must not contain '..': {path!r}")
    if not parts:
        raise ValueError(f"path must name a file: {path!r}")
    return "/".join(parts)


def write_text_atomic(target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(target.suffix + ".tmp")
    tmp.write_text(content, encoding="utf-8", newline="\n")
    tmp.replace(target)


class Workspace:
    """
    Project workspace on disk.

    Layout:
    - spec/spec.md, spec/design.md: planning documents
    - src/: files written by agents
    - logs/: conversation logs
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root).resolve()
        self.spec_dir = self.root / "spec"
        self.src_dir = self.root / "src"
        self.logs_dir = self.root / "logs"
        self.conversation: list[dict[str, Any]] = []

    def prepare(self) -> None:
        for d in (self.spec_dir, self.src_dir, self.logs_dir):
            d.mkdir(parents=True, exist_ok=True)

    def write_spec(self, content: str) -> Path:
        p = self.spec_dir / "spec.md"
        write_text_atomic(p, content)
        return p

    def write_design(self, content: str) -> Path:
        p = self.spec_dir / "design.md"
        write_text_atomic(p, content)
        return p

    def write_file(self, rel_path: str, content: str) -> Path:
        rel = validate_relative_path(rel_path)
        p = (self.src_dir / rel).resolve()
        if not p.is_relative_to(self.src_dir):
            raise ValueError(f"Refuse to write outside workspace: {rel_path}")
        write_text_atomic(p, content)
        return p

    def append_conversation_entry(self, from_: str, to: str, type_: str, content: str) -> dict[str, Any]:
        entry = {"timestamp": utc_now_iso(), "from": from_, "to": to, "type": type_, "content": content}
        self.conversation.append(entry)
        return entry

    def save_conversation_log(self) -> Path:
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        p = self.logs_dir / f"conversation-{stamp}.json"
        write_text_atomic(p, json.dumps(self.conversation, ensure_ascii=False, indent=2))
        return p

    def summarize_conversation(self, *, max_chars: int = 80) -> dict[str, Any]:
        counts = Counter(e["type"] for e in self.conversation)
        files = [e["content"] for e in self.conversation if e["type"] == "file_created"]
        timeline = [
            {"time": e["timestamp"], "text": f"[{e['from']} -> {e['to']}] {_truncate(e['content'], max_chars)}"}
            for e in self.conversation
        ]
        return {
            "total": len(self.conversation),
            "by_type": dict(counts),
            "files_created": files,
            "timeline": timeline,
        }


def _truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."
