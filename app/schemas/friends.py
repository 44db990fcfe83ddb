from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.models.users import Friendship as FriendshipModel, FriendRequestDecision
from app.utils.dates import diff_for_humans

# Верхняя граница INTEGER-колонок id
MAX_ID = 2**31 - 1


class FriendRequestCreate(BaseModel):
    friend_id: int = Field(gt=0, le=MAX_ID, description="id пользователя, которому отправляется заявка")


class FriendRequestResponseCreate(BaseModel):
    user_id: int = Field(gt=0, le=MAX_ID, description="id пользователя, отправившего заявку")
    status: FriendRequestDecision = Field(description="1 - принять, 0 - отклонить")


class ResourceLinks(BaseModel):
    self_link: str = Field(alias="self")

    model_config = ConfigDict(populate_by_name=True)


class FriendRequestAttributes(BaseModel):
    confirmed_at: str | None = None


class FriendRequestData(BaseModel):
    type: Literal["friend_request"] = "friend_request"
    friend_request_id: int
    attributes: FriendRequestAttributes


class FriendRequestResource(BaseModel):
    data: FriendRequestData
    links: ResourceLinks

    @classmethod
    def from_model(cls, friendship: FriendshipModel, base_url: str) -> "FriendRequestResource":
        """
        Ссылка self всегда ведёт на профиль получателя заявки.
        """
        confirmed_at = diff_for_humans(friendship.confirmed_at) if friendship.confirmed_at else None
        return cls(
            data=FriendRequestData(
                friend_request_id=friendship.id,
                attributes=FriendRequestAttributes(confirmed_at=confirmed_at),
            ),
            links=ResourceLinks(self_link=profile_url(base_url, friendship.friend_id)),
        )


def profile_url(base_url: str, user_id: int) -> str:
    return f"{str(base_url).rstrip('/')}/users/{user_id}"
