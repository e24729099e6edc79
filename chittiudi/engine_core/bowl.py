"""
Bowl State - The data model the engine operates on.

Design principles:
- Immutable-friendly: all transitions return a new Bowl
- Serializable: maps to and from the stored document shape
- Versioned: every stored write bumps ``revision`` for compare-and-swap
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class BowlType(Enum):
    """How a bowl turns its entries or members into an output."""
    PICK_ONE_DISCARD = "pick_one_discard"
    PICK_ONE_KEEP = "pick_one_keep"
    SHUFFLE_MEMBERS = "shuffle_members"
    MAKE_PAIRS = "make_pairs"
    SECRET_SANTA = "secret_santa"
    SHUFFLE_ENTRIES = "shuffle_entries"

    @classmethod
    def parse(cls, value: BowlType | str) -> BowlType:
        """Accept an enum member, its value, or its name (any case)."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown bowl type: {value!r}")
        key = value.strip().lower()
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member
        raise ValueError(f"Unknown bowl type: {value!r}")

    @property
    def uses_entries(self) -> bool:
        return self in {
            BowlType.PICK_ONE_DISCARD,
            BowlType.PICK_ONE_KEEP,
            BowlType.SHUFFLE_ENTRIES,
        }


@dataclass(frozen=True)
class User:
    """A device identity plus the display name chosen on that device."""
    id: str
    name: str


@dataclass(frozen=True)
class Member:
    """Denormalized copy of a user who has added an entry to a bowl."""
    id: str
    name: str

    @classmethod
    def from_user(cls, user: User) -> Member:
        return cls(id=user.id, name=user.name)

    def to_document(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> Member:
        return cls(id=data["id"], name=data.get("name", ""))


@dataclass(frozen=True)
class Entry:
    """One text contribution to a bowl."""
    id: str
    text: str
    user_id: str
    user_name: str

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "userId": self.user_id,
            "userName": self.user_name,
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> Entry:
        return cls(
            id=data["id"],
            text=data["text"],
            user_id=data.get("userId", ""),
            user_name=data.get("userName", ""),
        )


@dataclass
class Bowl:
    """
    The aggregate root: one shared bowl.

    Owner fields never change after creation. ``output`` stays None until
    the first resolution.
    """
    id: str
    name: str
    owner_id: str
    owner_name: str
    type: BowlType
    description: str = ""

    list_members: list[Member] = field(default_factory=list)
    list_entries: list[Entry] = field(default_factory=list)

    # 0 means unbounded
    member_limit: int = 0
    input_count: int = 0

    output: str | None = None

    # Bumped by the store on every write
    revision: int = 0

    def is_owner(self, user_id: str) -> bool:
        return user_id == self.owner_id

    def is_member(self, user_id: str) -> bool:
        return any(m.id == user_id for m in self.list_members)

    def get_entry(self, entry_id: str) -> Entry | None:
        for entry in self.list_entries:
            if entry.id == entry_id:
                return entry
        return None

    def has_entry_text(self, text: str) -> bool:
        return any(e.text == text for e in self.list_entries)

    def entries_by(self, user_id: str) -> list[Entry]:
        return [e for e in self.list_entries if e.user_id == user_id]

    def with_member_if_absent(self, member: Member) -> Bowl:
        """Return new bowl with member appended, unless already present."""
        if self.is_member(member.id):
            return self
        return self._copy_with(list_members=[*self.list_members, member])

    def with_entry(self, entry: Entry) -> Bowl:
        """Return new bowl with entry appended."""
        return self._copy_with(list_entries=[*self.list_entries, entry])

    def without_entry(self, entry_id: str) -> Bowl:
        """Return new bowl without the entry; unknown ids leave it as is."""
        if self.get_entry(entry_id) is None:
            return self
        return self._copy_with(
            list_entries=[e for e in self.list_entries if e.id != entry_id]
        )

    def with_output(self, output: str) -> Bowl:
        return self._copy_with(output=output)

    def cleared(self) -> Bowl:
        """Return new bowl with no entries and an empty output."""
        return self._copy_with(list_entries=[], output="")

    def with_revision(self, revision: int) -> Bowl:
        return self._copy_with(revision=revision)

    def _copy_with(self, **kwargs) -> Bowl:
        """Create a copy with some fields replaced."""
        return Bowl(
            id=kwargs.get("id", self.id),
            name=kwargs.get("name", self.name),
            owner_id=self.owner_id,
            owner_name=self.owner_name,
            type=kwargs.get("type", self.type),
            description=kwargs.get("description", self.description),
            list_members=list(kwargs.get("list_members", self.list_members)),
            list_entries=list(kwargs.get("list_entries", self.list_entries)),
            member_limit=kwargs.get("member_limit", self.member_limit),
            input_count=kwargs.get("input_count", self.input_count),
            output=kwargs.get("output", self.output),
            revision=kwargs.get("revision", self.revision),
        )

    # =========================================================================
    # Document mapping
    # =========================================================================

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored document shape."""
        document: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "ownerId": self.owner_id,
            "ownerName": self.owner_name,
            "listMembers": [m.to_document() for m in self.list_members],
            "listEntries": [e.to_document() for e in self.list_entries],
            "memberLimit": self.member_limit,
            "inputCount": self.input_count,
            "type": self.type.value,
            "revision": self.revision,
        }
        if self.output is not None:
            document["output"] = self.output
        return document

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> Bowl:
        """Load from a stored document. A missing ``output`` stays None."""
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            description=data.get("description", ""),
            owner_id=data["ownerId"],
            owner_name=data.get("ownerName", ""),
            type=BowlType.parse(data["type"]),
            list_members=[Member.from_document(m) for m in data.get("listMembers") or []],
            list_entries=[Entry.from_document(e) for e in data.get("listEntries") or []],
            member_limit=int(data.get("memberLimit") or 0),
            input_count=int(data.get("inputCount") or 0),
            output=data.get("output"),
            revision=int(data.get("revision") or 0),
        )
