import json
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from core.logging_config import get_logger
from models.chat import ChatMessage

logger = get_logger("chat_store")


def file_timestamp(now: Optional[datetime] = None) -> str:
    """UTC ISO timestamp safe for file names, e.g. 2026-10-17T12-00-00-123Z."""
    now = now or datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def format_transcript(messages: List[ChatMessage]) -> str:
    return "\n".join(
        f"{'AI' if msg.role == 'ai' else 'Human'}: {msg.statement}"
        for msg in messages
    )


class ChatStore:
    """Writes chat transcripts under a fixed local directory."""

    def __init__(self, chats_dir: str = "chats", archive_dir: str = "chats_archive"):
        self.chats_dir = Path(chats_dir)
        self.archive_dir = Path(archive_dir)

    def _new_path(self, suffix: str) -> Path:
        self.chats_dir.mkdir(parents=True, exist_ok=True)
        return self.chats_dir / f"chat-{file_timestamp()}{suffix}"

    def save_chat(self, messages: List[ChatMessage]) -> Path:
        file_path = self._new_path(".json")
        payload = [msg.model_dump() for msg in messages]
        file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        logger.info(f"Chat saved to {file_path}")
        return file_path

    def export_chat(self, messages: List[ChatMessage]) -> Path:
        file_path = self._new_path(".txt")
        file_path.write_text(format_transcript(messages), encoding="utf-8")
        logger.info(f"Chat exported to {file_path}")
        return file_path

    def load_chat_history(self, file_path) -> List[ChatMessage]:
        file_path = Path(file_path)
        if not file_path.exists():
            logger.warning(f"Chat history file does not exist: {file_path}")
            return []

        chat_data = json.loads(file_path.read_text(encoding="utf-8"))
        logger.info(f"Loaded chat history from {file_path}")
        return [ChatMessage(**item) for item in chat_data]

    def list_chats(self) -> List[Path]:
        if not self.chats_dir.exists():
            return []
        return sorted(p for p in self.chats_dir.iterdir() if p.is_file())

    def archive_chats(self, archive_dir=None) -> int:
        """Move every chat file into ``archive_dir``; returns how many were moved."""
        if not self.chats_dir.exists():
            logger.warning(f"Chats directory does not exist: {self.chats_dir}")
            return 0

        files = self.list_chats()
        if not files:
            logger.info("No chats to archive.")
            return 0

        archive_dir = Path(archive_dir) if archive_dir is not None else self.archive_dir
        archive_dir.mkdir(parents=True, exist_ok=True)

        for file in files:
            shutil.move(str(file), str(archive_dir / file.name))
            logger.info(f"Archived chat file: {file.name}")

        logger.info("All chats archived successfully.")
        return len(files)
