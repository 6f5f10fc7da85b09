from __future__ import annotations

from typing import Callable, Union

from app.services.backend import BackendClient
from app.services.blog import BlogController
from app.services.entities import EntityShape, get_entity
from app.services.records import RecordController
from app.services.settings_store import SingletonSettings
from app.services.tours import TourController
from app.services.users import AgencyController


Controller = Union[RecordController, SingletonSettings]

_CONTROLLER_REGISTRY: dict[str, Callable[[BackendClient, EntityShape], Controller]] = {
    "tours": TourController,
    "blog_posts": BlogController,
    "agencies": AgencyController,
}


def build_controller(client: BackendClient, entity: str) -> Controller:
    """
    Controller for an entity key. Singleton settings get SingletonSettings,
    entities with extra save rules get their own class, the rest the generic
    RecordController. Unknown keys raise KeyError.
    """
    shape = get_entity(entity)
    if shape.singleton:
        return SingletonSettings(client, shape)
    factory = _CONTROLLER_REGISTRY.get(shape.key, RecordController)
    return factory(client, shape)
