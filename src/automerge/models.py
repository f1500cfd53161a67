"""
Value types shared by the checker, the statement builders and the orchestrator.

Nothing here is persisted or cached: every merge/delete call derives fresh
instances from the catalog and discards them once the statement has run.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class TableRef:
    """A schema-qualified relation."""

    schema: str
    name: str

    def __str__(self) -> str:
        return f"{self.schema}.{self.name}"


@dataclass(frozen=True)
class KeyConstraint:
    """A primary key or unique constraint on ``table``."""

    table: TableRef
    name: str
    columns: tuple[str, ...]

    def __post_init__(self):
        if not self.columns:
            raise ValueError(f"Key constraint {self.name} has no columns")
        # Accept any iterable, store a tuple so the constraint stays hashable
        object.__setattr__(self, "columns", tuple(self.columns))


class ColumnRole(str, Enum):
    KEY = "KEY"
    PAYLOAD = "PAYLOAD"


class ColumnClassification(Mapping[str, ColumnRole]):
    """
    Ordered mapping of shared column name to its role in the merge.

    Shared columns are taken in destination order; a shared column is KEY when
    it belongs to the key constraint and PAYLOAD otherwise.
    """

    def __init__(self, roles: Iterable[tuple[str, ColumnRole]], key: KeyConstraint):
        self._roles = dict(roles)
        self.key = key

    @classmethod
    def classify(
        cls,
        dest_columns: Iterable[str],
        source_columns: Iterable[str],
        key: KeyConstraint,
    ) -> "ColumnClassification":
        """
        Classify the columns common to source and destination.

        Args:
            dest_columns: Destination columns in catalog order
            source_columns: Source columns (order irrelevant)
            key: Key constraint on the destination

        Returns:
            ColumnClassification over the shared columns
        """
        source = set(source_columns)
        key_members = set(key.columns)
        return cls(
            (
                (column, ColumnRole.KEY if column in key_members else ColumnRole.PAYLOAD)
                for column in dest_columns
                if column in source
            ),
            key,
        )

    def __getitem__(self, column: str) -> ColumnRole:
        return self._roles[column]

    def __iter__(self) -> Iterator[str]:
        return iter(self._roles)

    def __len__(self) -> int:
        return len(self._roles)

    def __repr__(self) -> str:
        return f"ColumnClassification({self._roles!r}, key={self.key.name!r})"

    @property
    def shared_columns(self) -> list[str]:
        return list(self._roles)

    @property
    def key_columns(self) -> list[str]:
        return [c for c, role in self._roles.items() if role is ColumnRole.KEY]

    @property
    def payload_columns(self) -> list[str]:
        return [c for c, role in self._roles.items() if role is ColumnRole.PAYLOAD]

    @property
    def missing_key_columns(self) -> list[str]:
        """Key columns that are not shared by both tables."""
        return [c for c in self.key.columns if c not in self._roles]


class StatementKind(str, Enum):
    MERGE = "MERGE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class GeneratedStatement:
    """Rendered DML text plus the inputs it was generated from."""

    kind: StatementKind
    text: str
    source: TableRef
    destination: TableRef
    key: KeyConstraint

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class MergePlan:
    """
    Column lists of a MERGE before any SQL text is produced.

    ``join_columns`` become ``S.c = T.c`` predicates, ``update_columns`` the
    WHEN MATCHED assignments and ``insert_columns`` both the INSERT column
    list and the VALUES list (taken from the source).
    """

    source: TableRef
    destination: TableRef
    key: KeyConstraint
    join_columns: tuple[str, ...]
    update_columns: tuple[str, ...]
    insert_columns: tuple[str, ...]


@dataclass(frozen=True)
class DeletePlan:
    """Key columns projected on both sides of the set-difference delete."""

    source: TableRef
    destination: TableRef
    key: KeyConstraint
    key_columns: tuple[str, ...] = field(default_factory=tuple)
