from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from actionflow.serializers import Serializer, mapped_columns, to_record, to_serializable


class Profile(BaseModel):
    bio: str


@dataclass
class Point:
    x: int
    y: int


class Author:
    def __init__(self, name):
        self.name = name


class Post:
    def __init__(self, title, author, tags):
        self.title = title
        self.author = author
        self.tags = tags


class AuthorSerializer(Serializer):
    attributes = ("name",)


class PostSerializer(Serializer):
    attributes = ("title", "tags")
    methods = ("shout",)
    associations = {"author": AuthorSerializer}

    def shout(self, post):
        return post.title.upper()


def test_to_record_variants() -> None:
    assert to_record(Profile(bio="hi")) == {"bio": "hi"}
    assert to_record(Point(1, 2)) == {"x": 1, "y": 2}
    assert to_record("text") == "text"
    assert mapped_columns(Point) is None
    assert mapped_columns(Point(1, 2)) is None


def test_to_serializable_nested() -> None:
    data = {"when": datetime(2024, 1, 2, 3, 4, 5), "amount": Decimal("1.5"), "points": (Point(0, 1),),
            "error": ValueError("bad")}
    assert to_serializable(data) == {
        "when": "2024-01-02T03:04:05",
        "amount": 1.5,
        "points": [{"x": 0, "y": 1}],
        "error": "bad",
    }


def test_declarative_serializer() -> None:
    post = Post("hello", Author("ada"), ["a", "b"])
    assert PostSerializer().serialize(post) == {
        "title": "hello",
        "tags": ["a", "b"],
        "shout": "HELLO",
        "author": {"name": "ada"},
    }
    assert PostSerializer().serialize([post])[0]["title"] == "hello"
    assert PostSerializer().serialize(None) is None
    assert AuthorSerializer().serialize({"name": "bob", "email": "x"}) == {"name": "bob"}
