"""Domain models for the semlink database layer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from semlink.errors import InvalidTarget


class ItemKind(str, Enum):
    """Kinds of content item known to the registry."""

    RESOURCE = "resource"
    PROJECT = "project"
    AREA = "area"
    NOTE = "note"


# Only resources and notes carry text that gets embedded.
EMBEDDABLE_KINDS: frozenset[ItemKind] = frozenset({ItemKind.RESOURCE, ItemKind.NOTE})


class ReferenceType(str, Enum):
    MANUAL = "MANUAL"
    AI_SUGGESTED = "AI_SUGGESTED"
    AUTO_GENERATED = "AUTO_GENERATED"
    CITATION = "CITATION"
    MENTION = "MENTION"
    RELATED = "RELATED"


class SummaryType(str, Enum):
    GENERAL = "GENERAL"
    TECHNICAL = "TECHNICAL"
    EXECUTIVE = "EXECUTIVE"
    BRIEF = "BRIEF"
    DETAILED = "DETAILED"
    LAYMAN = "LAYMAN"


class SummaryLength(str, Enum):
    SHORT = "SHORT"
    MEDIUM = "MEDIUM"
    LONG = "LONG"
    CUSTOM = "CUSTOM"


@dataclass
class ContentItem:
    """A resource, project, area or note owned by one user."""

    id: str
    owner_id: str
    kind: ItemKind
    title: str = ""
    text: str = ""
    created_at: str | None = None


@dataclass
class EmbeddedItem:
    owner_id: str
    item_id: str
    item_kind: ItemKind
    vector: list[float]
    content_hash: str = ""
    updated_at: str | None = None


@dataclass(frozen=True)
class ReferenceTarget:
    """The one item a reference edge points at.

    Build it with the per-kind constructors (``ReferenceTarget.note(id)``) or,
    at an input boundary holding four optional ids, with ``from_fields``.
    """

    kind: ItemKind
    id: str

    def __post_init__(self) -> None:
        try:
            kind = ItemKind(self.kind)
        except ValueError:
            raise InvalidTarget(f"Unknown reference target kind '{self.kind}'.") from None
        if not self.id:
            raise InvalidTarget(f"A {kind.value} target needs an id.")
        object.__setattr__(self, "kind", kind)

    @classmethod
    def resource(cls, item_id: str) -> ReferenceTarget:
        return cls(ItemKind.RESOURCE, item_id)

    @classmethod
    def project(cls, item_id: str) -> ReferenceTarget:
        return cls(ItemKind.PROJECT, item_id)

    @classmethod
    def area(cls, item_id: str) -> ReferenceTarget:
        return cls(ItemKind.AREA, item_id)

    @classmethod
    def note(cls, item_id: str) -> ReferenceTarget:
        return cls(ItemKind.NOTE, item_id)

    @classmethod
    def from_fields(
        cls,
        referenced_resource_id: str | None = None,
        project_id: str | None = None,
        area_id: str | None = None,
        note_id: str | None = None,
    ) -> ReferenceTarget:
        """Build a target from four nullable ids, exactly one of which must be set.

        Raises:
            InvalidTarget: If zero or more than one id is given.
        """
        arms = [
            (kind, value)
            for kind, value in (
                (ItemKind.RESOURCE, referenced_resource_id),
                (ItemKind.PROJECT, project_id),
                (ItemKind.AREA, area_id),
                (ItemKind.NOTE, note_id),
            )
            if value
        ]
        if not arms:
            raise InvalidTarget("A reference target must be specified.")
        if len(arms) > 1:
            names = ", ".join(kind.value for kind, _ in arms)
            raise InvalidTarget(f"A reference has exactly one target; got {names}.")
        kind, value = arms[0]
        return cls(kind, value)


@dataclass
class ReferenceEdge:
    id: str
    owner_id: str
    source_resource_id: str
    target: ReferenceTarget
    reference_type: ReferenceType = ReferenceType.MANUAL
    context: str | None = None
    snippet: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class SummaryKind:
    """Summary type × length; versions are grouped per (resource, kind)."""

    type: SummaryType = SummaryType.GENERAL
    length: SummaryLength = SummaryLength.MEDIUM

    def __str__(self) -> str:
        return f"{self.type.value}/{self.length.value}"


@dataclass
class SummaryVersion:
    id: str
    resource_id: str
    owner_id: str
    kind: SummaryKind
    content: str
    generated_at: str | None = None
    predecessor_id: str | None = None  # None for the root of a chain


@dataclass
class SimilarityResult:
    """One ranked neighbour from a similarity query. Never persisted.

    Attributes:
        item_id: The matching content item.
        item_kind: RESOURCE or NOTE.
        owner_id: Always the owner the query was scoped to.
        score: Cosine similarity clamped to [0, 1].
        rank: 1-based position in the result list.
    """

    item_id: str
    item_kind: ItemKind
    owner_id: str
    score: float
    rank: int
