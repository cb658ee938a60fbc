"""Routing configuration models."""

from typing import Literal

from pydantic import BaseModel, Field

TranslatorName = Literal["artifact-packaged", "artifact-published", "service-deployed"]


class RouteConfig(BaseModel):
    """Maps one CDF event type onto a translator."""

    event_type: str = Field(description="CDF event type, matched exactly")
    translator: TranslatorName


class RoutesConfig(BaseModel):
    """Complete routing configuration."""

    routes: list[RouteConfig] = Field(default_factory=list)


DEFAULT_ROUTES = RoutesConfig(
    routes=[
        RouteConfig(event_type="cd.artifact.packaged.v1", translator="artifact-packaged"),
        RouteConfig(event_type="cd.artifact.published.v1", translator="artifact-published"),
        RouteConfig(event_type="cd.service.deployed.v1", translator="service-deployed"),
    ]
)
