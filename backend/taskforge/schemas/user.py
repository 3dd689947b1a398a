from pydantic import Field

from taskforge.schemas.base import CamelModel


class UserProfile(CamelModel):
    user_id: str = Field(description="Identity subject id")
    email: str | None = None
    name: str | None = None
    nickname: str | None = None
    picture: str | None = Field(default=None, description="Profile picture URL")


class PictureUpdated(CamelModel):
    picture: str = Field(description="New profile picture URL")
