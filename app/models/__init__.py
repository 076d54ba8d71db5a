# ORM models
from app.models.base import Base
from app.models.profile import Profile
from app.models.profile_view import ProfileView
from app.models.social_link import SocialLink
from app.models.user import User
from app.models.work_experience import WorkExperience

__all__ = [
    "Base",
    "Profile",
    "ProfileView",
    "SocialLink",
    "User",
    "WorkExperience",
]
