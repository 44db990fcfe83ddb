from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, ConfigDict

from app.models.users import User as UserModel, Friendship as FriendshipModel
from app.schemas.friends import FriendRequestResource, ResourceLinks, profile_url


class UserCreate(BaseModel):
    email: EmailStr = Field(description="Email пользователя")
    password: str = Field(min_length=8, description="Пароль (минимум 8 символов)")
    first_name: str | None = Field(default=None, description="Имя")
    last_name: str | None = Field(default=None, description="Фамилия")


class User(BaseModel):
    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    is_active: bool = True
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserAttributes(BaseModel):
    name: str
    friendship: FriendRequestResource | None = None


class UserData(BaseModel):
    type: Literal["users"] = "users"
    user_id: int
    attributes: UserAttributes


class UserResource(BaseModel):
    data: UserData
    links: ResourceLinks

    @classmethod
    def from_model(
        cls,
        user: UserModel,
        friendship: FriendshipModel | None,
        base_url: str,
    ) -> "UserResource":
        return cls(
            data=UserData(
                user_id=user.id,
                attributes=UserAttributes(
                    name=user.name,
                    friendship=FriendRequestResource.from_model(friendship, base_url) if friendship else None,
                ),
            ),
            links=ResourceLinks(self_link=profile_url(base_url, user.id)),
        )
