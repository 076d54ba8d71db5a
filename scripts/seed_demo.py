# scripts/seed_demo.py
"""데모 계정 + 발행된 프로필 1개 생성. 서비스 레이어를 그대로 거친다(슬러그·QR 포함).

실행: python scripts/seed_demo.py  (DATABASE_URL, JWT 시크릿 필요. 스키마는 alembic upgrade head로 먼저 생성)
"""

import asyncio
import os
import sys
from datetime import date

# 모듈 경로 설정
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.database import dispose_db, init_db, transaction
from app.core.exceptions import ConflictError
from app.repositories.user_repository import get_by_email
from app.schemas.profile import ProfileCreate, SocialLinkIn, WorkExperienceIn
from app.services.auth_service import register_user
from app.services.profile_service import create_profile

# 윈도우 환경 asyncio 에러 방지
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

DEMO_EMAIL = "testuser@example.com"
DEMO_PASSWORD = "Test1234"
DEMO_NAME = "John Doe"


async def seed() -> None:
    init_db()
    try:
        print(f"👤 데모 유저 생성: {DEMO_EMAIL}")
        try:
            user, _ = await register_user(DEMO_EMAIL, DEMO_PASSWORD, DEMO_NAME)
        except ConflictError:
            print("   이미 존재합니다. 기존 계정에 프로필을 추가합니다.")
            async with transaction() as session:
                user = await get_by_email(session, DEMO_EMAIL)

        payload = ProfileCreate(
            full_name=DEMO_NAME,
            title="Senior Full Stack Developer",
            phone="+84 123 456 789",
            address="Ho Chi Minh City, Vietnam",
            email=DEMO_EMAIL,
            work_experiences=[
                WorkExperienceIn(
                    company="Tech Corp",
                    position="Senior Full Stack Developer",
                    start_date=date(2021, 1, 1),
                    description="Leading development of enterprise web applications.",
                ),
                WorkExperienceIn(
                    company="StartUp Inc",
                    position="Full Stack Developer",
                    start_date=date(2018, 6, 1),
                    end_date=date(2020, 12, 31),
                ),
            ],
            social_links=[
                SocialLinkIn(platform="linkedin", url="https://linkedin.com/in/johndoe"),
                SocialLinkIn(platform="github", url="https://github.com/johndoe"),
            ],
        )
        profile = await create_profile(user.id, payload)
        print(f"✅ 프로필 생성: slug={profile.slug} url={profile.profile_url}")
        print(f"   QR: {profile.qr_code_url or '(생성 실패)'}")
        print(f"🔑 로그인: {DEMO_EMAIL} / {DEMO_PASSWORD}")
    finally:
        await dispose_db()


if __name__ == "__main__":
    asyncio.run(seed())
