from pydantic import BaseModel


class PostMeta(BaseModel):
    slug: str
    title: str = ""
    date: str = ""
    description: str = ""


class PostData(PostMeta):
    content: str
