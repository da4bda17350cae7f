from __future__ import annotations

from pydantic import BaseModel


class Post(BaseModel):
    id: str
    username: str                        # author handle, no leading @
    text: str = ""
    author_name: str | None = None
    in_reply_to: Post | None = None      # fully resolved parent post
    is_retweet: bool = False
    timestamp_ms: int = 0                # decoded from the snowflake id
    likes: int = 0
    retweets: int = 0
    replies: int = 0
    views: int = 0
    media: list[str] = []
    time_ago: str | None = None


class Profile(BaseModel):
    username: str
    display_name: str = ""
    bio: str = ""
    joined: str = ""
    tweets_count: int = 0
    followers: int = 0
    following: int = 0


Thread = list[Post]
