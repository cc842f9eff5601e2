import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Integer, String, create_engine
from sqlalchemy.orm import Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from actionflow.api.app import create_app
from actionflow.api.resources import ResourcesController
from actionflow.db import Base
from actionflow.errors import MethodNotOverriddenError
from actionflow.serializers import Serializer


class Gadget(Base):
    __tablename__ = "gadgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50))
    price: Mapped[int] = mapped_column(Integer, default=0)


class GadgetSerializer(Serializer):
    attributes = ("id", "name")
    methods = ("label",)

    def label(self, gadget):
        return f"{gadget.name} (${gadget.price})"


class GadgetsController(ResourcesController):
    model = Gadget
    permitted_params = ("name", "price")

    def validate_resource(self, resource):
        if not resource.name:
            return {"name": ["can't be blank"]}
        return {}


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield sessionmaker(engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def client(settings, flash_store, session_factory) -> TestClient:
    settings.per_page = 2
    controller = GadgetsController(settings=settings, flash_store=flash_store, session_factory=session_factory)
    return TestClient(create_app([controller], configure_logging=False))


def create(client, name, price=1):
    return client.post("/gadgets", json={"gadget": {"name": name, "price": price, "id": 99}})


def test_create_and_show(client) -> None:
    created = create(client, "lamp", 12)
    assert created.status_code == 201
    assert created.json() == {"data": {"id": 1, "name": "lamp", "price": 12}, "meta": {"version": "v1"}}

    shown = client.get("/gadgets/1")
    assert shown.json()["data"]["name"] == "lamp"


def test_create_validation_error_rolls_back(client) -> None:
    response = create(client, "")
    assert response.status_code == 422
    assert response.json()["data"]["error"]["errors"] == {"name": ["can't be blank"]}
    assert client.get("/gadgets").json()["data"] == []


def test_index_is_paginated(client) -> None:
    for name in ("a", "b", "c"):
        create(client, name)

    first = client.get("/gadgets").json()
    assert [g["name"] for g in first["data"]] == ["a", "b"]
    assert first["meta"]["pagination"] == {
        "current_page": 1,
        "per_page": 2,
        "total_count": 3,
        "total_pages": 2,
        "next_page": 2,
        "prev_page": None,
    }

    second = client.get("/gadgets", params={"page": 2}).json()
    assert [g["name"] for g in second["data"]] == ["c"]


def test_update_and_destroy(client) -> None:
    create(client, "lamp", 5)

    updated = client.patch("/gadgets/1", json={"gadget": {"price": 7}})
    assert updated.status_code == 200
    assert updated.json()["data"]["price"] == 7

    destroyed = client.delete("/gadgets/1")
    assert destroyed.status_code == 200
    assert destroyed.json()["data"]["name"] == "lamp"

    missing = client.get("/gadgets/1")
    assert missing.status_code == 404
    assert missing.json()["data"]["error"]["type"] == "NotFoundError"


def test_serializer_class_is_used(settings, flash_store, session_factory) -> None:
    class SerializedGadgetsController(GadgetsController):
        resource_name = "gadgets"
        serializer = GadgetSerializer

    controller = SerializedGadgetsController(settings=settings, flash_store=flash_store,
                                             session_factory=session_factory)
    client = TestClient(create_app([controller], configure_logging=False))
    create(client, "lamp", 3)

    assert client.get("/gadgets/1").json()["data"] == {"id": 1, "name": "lamp", "label": "lamp ($3)"}


def test_resource_class_requires_model(settings, flash_store, session_factory) -> None:
    class BareController(ResourcesController):
        pass

    controller = BareController(settings=settings, flash_store=flash_store, session_factory=session_factory)
    with pytest.raises(MethodNotOverriddenError):
        controller.resource_class()
