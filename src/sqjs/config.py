"""Stuff related to application configuration."""

from pydantic import BaseModel, ConfigDict
from typing import TypeAlias, Literal

#: General JSON type
JSON: TypeAlias = dict[str, "JSON"] | list["JSON"] | str | int | float | bool | None

#: Visual style of rendered diagrams.
Theme = Literal["simple", "hand-drawn"]

#: Supported themes, in the order they are offered to users.
THEMES: tuple[str, ...] = ("simple", "hand-drawn")


class Configuration(BaseModel):
    model_config = ConfigDict(extra="forbid", validate_assignment=True)
    #: Theme used when caller does not pass one explicitly.
    theme: Theme = "simple"
    #: Diagram compiler backend.
    compiler: Literal["mermaid", "plantuml"] = "mermaid"
    #: Base URL of PlantUML server, only used with plantuml compiler.
    plantuml_server_url: str = "http://localhost:10005/"
    #: PlantUML request timeout in seconds.
    plantuml_timeout: int = 30
    #: Maximum amount of cached validation results.
    validation_cache_size: int = 1000
    #: Validation result lifetime in seconds.
    validation_cache_ttl: float = 300.0
    #: Maximum amount of cached render results. Render results never expire.
    render_cache_size: int = 50
