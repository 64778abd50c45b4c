from dataclasses import dataclass, field
from enum import Enum
from typing import NotRequired, TypedDict

from models.user import User


class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


@dataclass
class Post:
    id: int
    title: str
    status: PostStatus
    author: User
    tags: list[str] = field(default_factory=list)
    score: float = 0.0


class CreatePostDto(TypedDict):
    title: str
    body: str
    draft: NotRequired[bool]
