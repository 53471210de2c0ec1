"""
Resource configuration models.

A configuration maps database names to resources, and each resource to
the design module that migrates it. Two shapes are accepted per resource:

- ``"path/to/module.py"``: applies to the owning database
- ``{"view": "design/view", "assets": "path/to/module.py"}``: applies to
  every database named by the rows of a view on the owning database
"""

from typing import Annotated, Any, Iterator

from pydantic import BeforeValidator, Field, RootModel, field_validator

from convey.models.base import ValueModel

ModulePath = Annotated[str, Field(min_length=1, description="Design module path")]


class SingleTarget(ValueModel):
    """Resource applied directly to its owning database."""

    module_path: ModulePath


class MultiTarget(ValueModel):
    """Resource applied to every database listed by a view."""

    view: str = Field(
        ...,
        description="View reference as 'designName/viewName'",
        examples=["dbs/allById"],
    )
    module_path: ModulePath = Field(..., alias="assets")

    @field_validator("view")
    @classmethod
    def validate_view(cls, v: str) -> str:
        """Ensure the view reference names a design and a view."""
        design, sep, view = v.partition("/")
        if not sep or not design or not view or "/" in view:
            raise ValueError("view must have the form 'designName/viewName'")
        return v

    @property
    def design_name(self) -> str:
        """Design document name holding the view."""
        return self.view.partition("/")[0]

    @property
    def view_name(self) -> str:
        """View name within the design document."""
        return self.view.partition("/")[2]


def _coerce_resource_spec(value: Any) -> Any:
    if isinstance(value, (SingleTarget, MultiTarget)):
        return value
    if isinstance(value, str):
        return SingleTarget(module_path=value)
    if isinstance(value, dict):
        return MultiTarget.model_validate(value)
    raise ValueError("resource must be a module path or a {view, assets} object")


ResourceSpec = Annotated[SingleTarget | MultiTarget, BeforeValidator(_coerce_resource_spec)]

ResourceMap = dict[str, ResourceSpec]


class Configuration(RootModel[dict[str, ResourceMap]]):
    """
    Ordered mapping of database name to its resources.

    Iteration order is traversal order.

    Usage:
        config = Configuration.model_validate({"app": {"init": "mods/init.py"}})
        for database, resources in config.items():
            ...
    """

    root: dict[str, ResourceMap] = Field(default_factory=dict)

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, database: str) -> ResourceMap:
        return self.root[database]

    def items(self):
        """Iterate ``(database, resources)`` pairs in order."""
        return self.root.items()

    @property
    def databases(self) -> list[str]:
        """Database names in traversal order."""
        return list(self.root)
