from pydantic import BaseModel, ConfigDict
from datetime import datetime


class UserFollowResponse(BaseModel):
    id: str
    follower_id: str
    following_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FollowStatus(BaseModel):
    follower_id: str
    following_id: str
    is_following: bool
