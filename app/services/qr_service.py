"""QR 코드 생성·삭제. 공개 프로필 URL을 담은 PNG를 qrcodes/<profile_id>.png 로 저장."""

import io
import logging
import uuid

import qrcode
from qrcode.constants import ERROR_CORRECT_H

from app.core.storage import LocalFileStore, get_file_store

logger = logging.getLogger(__name__)

QR_TARGET_PIXELS = 1000  # 인쇄용 고해상도(약 1000x1000px)
QR_BORDER_MODULES = 1


def qr_relative_path(profile_id: uuid.UUID | str) -> str:
    return f"qrcodes/{profile_id}.png"


def render_qr_png(data: str) -> bytes:
    """오류 정정 H 레벨, 흑백 PNG. 모듈 수에 맞춰 box_size를 골라 목표 해상도에 근접."""
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, border=QR_BORDER_MODULES)
    qr.add_data(data)
    qr.make(fit=True)
    qr.box_size = max(1, QR_TARGET_PIXELS // (qr.modules_count + 2 * QR_BORDER_MODULES))
    image = qr.make_image(fill_color="#000000", back_color="#FFFFFF")
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


async def generate_qr_code(
    profile_url: str, profile_id: uuid.UUID, store: LocalFileStore | None = None
) -> str:
    """QR PNG 저장 후 공개 URL(/uploads/qrcodes/<id>.png) 반환. 실패는 호출 측이 처리."""
    store = store or get_file_store()
    png = render_qr_png(profile_url)
    stored = await store.save(qr_relative_path(profile_id), png)
    return stored.url


async def delete_qr_code(profile_id: uuid.UUID, store: LocalFileStore | None = None) -> None:
    """Best-effort 삭제. 파일 없음은 무시, 그 외 오류는 로그만."""
    store = store or get_file_store()
    try:
        await store.delete(qr_relative_path(profile_id))
    except OSError:
        logger.exception("QR code deletion failed: profile_id=%s", profile_id)
