from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


def _default_links() -> dict[str, str]:
    return {}


class ChannelInfo(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    active_from: str | None = Field(default=None, alias="activeFrom")
    view_counter: str | None = Field(default=None, alias="viewCounter")
    channel_description: str | None = Field(default=None, alias="channelDescription")
    country: str | None = None
    links: dict[str, str] = Field(default_factory=_default_links)


class CanonicalVideo(BaseModel):
    """Public JSON record for one scraped video.

    Field order is the serialized key order and is part of the output contract.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    title: str | None = None
    author: str | None = None
    video_url: str = Field(alias="videoUrl", min_length=1)
    cover_image: str | None = Field(default=None, alias="coverImage")
    subscriber_count: NonNegativeInt | None = Field(default=None, alias="subscriberCount")
    like_count: NonNegativeInt | None = Field(default=None, alias="likeCount")
    description: str | None = None
    view_count: NonNegativeInt | None = Field(default=None, alias="viewCount")
    comment_count: NonNegativeInt | None = Field(default=None, alias="commentCount")
    published_at: str | None = Field(default=None, alias="publishedAt")
    id: str | None = None
    amount_of_videos: NonNegativeInt | None = Field(default=None, alias="amountOfVideos")
    profile_picture: str | None = Field(default=None, alias="profilePicture")
    transcript: str | None = None
    channel_info: ChannelInfo | None = Field(default=None, alias="channelInfo")

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
