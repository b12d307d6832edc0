"""Data model for the template dependency graph.

A dependency declaration is one directed edge ("this template requires that
one"). Graph nodes hold the declared edges plus the reverse ``dependents``
relation and the computed level. Circular chains are cycle witnesses reported
back to callers as data.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class DependencyInputError(ValueError):
    """Exception raised when a call receives a malformed id or declaration.

    The graph is never modified when this is raised.
    """

    def __init__(self, message: str, value: Any = None):
        """Initialize the exception with a descriptive message.

        Args:
            message: Description of the input error
            value: The offending value, kept for callers that want to report it
        """
        super().__init__(message)
        self.message = message
        self.value = value


class DependencyDeclaration(BaseModel):
    """One directed edge: the declaring template requires ``target_id``.

    Attributes:
        target_id: Id of the required template
        version: Optional version hint, informational only
        optional: Optional edges are ignored by cycle detection, ordering and levels
        reason: Free-text explanation of why the dependency exists
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    target_id: str = Field(alias="targetId", min_length=1, description="Required template id")
    version: str | None = Field(default=None, description="Version hint")
    optional: bool = Field(default=False, description="Whether the edge is optional")
    reason: str | None = Field(default=None, description="Why the dependency exists")

    @field_validator("target_id")
    @classmethod
    def validate_target_id(cls, v: str) -> str:
        """Reject blank target ids. Ids are matched exactly, so no whitespace is stripped."""
        if not v.strip():
            msg = "target_id must not be blank"
            raise ValueError(msg)
        return v

    @classmethod
    def coerce(cls, value: "DependencyDeclaration | Mapping[str, Any] | str") -> "DependencyDeclaration":
        """Build a declaration from a model, a mapping or a bare target id.

        Raises:
            DependencyInputError: If the value cannot be turned into a declaration
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            value = {"target_id": value}
        if not isinstance(value, Mapping):
            msg = f"Dependency declaration must be a mapping or string, got {type(value).__name__}"
            raise DependencyInputError(msg, value)
        try:
            return cls.model_validate(dict(value))
        except ValidationError as e:
            msg = f"Invalid dependency declaration {dict(value)!r}: {e}"
            raise DependencyInputError(msg, value) from e


@dataclass
class GraphNode:
    """A vertex of the dependency graph keyed by template id.

    ``dependents`` is a lookup of who currently declares a dependency on this
    node. It never owns those nodes and is maintained only by registration.
    """

    id: str
    dependencies: list[DependencyDeclaration] = field(default_factory=list)
    dependents: list[str] = field(default_factory=list)
    level: int = 0
    registered: bool = False

    def required_dependencies(self) -> list[DependencyDeclaration]:
        """Return the non-optional declarations in declared order."""
        return [dep for dep in self.dependencies if not dep.optional]


@dataclass
class CircularChain:
    """A cycle witness: ``chain[0] == chain[-1]``.

    ``resolved`` is always False when produced; callers may flip it to track
    remediation.
    """

    chain: list[str]
    resolved: bool = False

    @property
    def key(self) -> str:
        """Identity used for deduplication, e.g. ``a->b->c->a``."""
        return "->".join(self.chain)

    def __str__(self) -> str:
        return " -> ".join(self.chain)
