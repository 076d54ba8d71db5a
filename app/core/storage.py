"""업로드 파일 저장소. settings.upload_dir 아래 로컬 디스크, /uploads/<상대경로>로 공개."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from app.core.config import settings

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"


@dataclass(frozen=True)
class StoredFile:
    url: str
    path: Path
    size: int


class LocalFileStore:
    """디스크 I/O는 스레드에서 실행(이벤트 루프 블로킹 방지)."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _resolve(self, relative_path: str) -> Path:
        path = (self.root / relative_path).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise ValueError(f"Path escapes upload root: {relative_path}")
        return path

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def save(self, relative_path: str, data: bytes) -> StoredFile:
        path = self._resolve(relative_path)
        await asyncio.to_thread(self._write, path, data)
        return StoredFile(url=f"{PUBLIC_PREFIX}/{relative_path}", path=path, size=len(data))

    async def delete(self, relative_path: str) -> bool:
        """삭제했으면 True, 원래 없으면 False. 그 외 OSError는 전파."""
        path = self._resolve(relative_path)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        return True


def get_file_store() -> LocalFileStore:
    """FastAPI Depends·서비스 기본값. 테스트는 UPLOAD_DIR을 임시 디렉터리로 지정."""
    return LocalFileStore(settings.upload_dir)
