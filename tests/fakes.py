"""In-memory directory data shared by the test modules."""

from __future__ import annotations

from netauth_nsscache.models import Account, Group

SHELLS = ["/bin/bash", "/bin/sh"]


class FakeSource:
    """In-memory directory that records every query it answers."""

    def __init__(
        self,
        groups: list[Group],
        entities: list[Account],
        members: dict[str, list[str]] | None = None,
        fail_on: str | None = None,
    ) -> None:
        self.groups = groups
        self.entities = entities
        self.members = members or {}
        self.fail_on = fail_on
        self.calls: list[tuple] = []

    def list_groups(self, pattern: str = "*") -> list[Group]:
        self.calls.append(("list_groups", pattern))
        return [g.model_copy(deep=True) for g in self.groups]

    def list_entities(self, pattern: str = "*") -> list[Account]:
        self.calls.append(("list_entities", pattern))
        return [e.model_copy(deep=True) for e in self.entities]

    def list_group_members(self, group: str, include_indirect: bool) -> list[Account]:
        self.calls.append(("list_group_members", group, include_indirect))
        if group == self.fail_on:
            raise RuntimeError("connection reset")
        return [Account(id=i, number=0) for i in self.members.get(group, [])]

    def list_entity_groups(self, entity_id: str, include_indirect: bool) -> list[Group]:
        self.calls.append(("list_entity_groups", entity_id, include_indirect))
        if entity_id == self.fail_on:
            raise RuntimeError("connection reset")
        return [Group(name=g, number=0) for g, ids in self.members.items() if entity_id in ids]

    def count(self, method: str) -> int:
        return sum(1 for c in self.calls if c[0] == method)


def sample_groups() -> list[Group]:
    return [
        Group(name="devs", number=2100),
        Group(name="staff", number=2000),
        Group(name="wheel", number=10),
    ]


def sample_entities() -> list[Account]:
    return [
        Account(id="bob", number=2002, primary_group="staff", home="/home/bob", shell="/bin/bash"),
        Account(id="alice", number=2001, primary_group="staff", gecos="Alice A", shell="/bin/zsh"),
        Account(id="carol", number=1999, primary_group="staff", shell="/bin/sh"),
        Account(id="dave", number=2003, primary_group="wheel", shell="/bin/sh"),
        Account(id="erin", number=2004, primary_group="nogroup", shell="/bin/sh"),
        Account(id="frank", number=2005, shell="/bin/sh"),
    ]


def sample_members() -> dict[str, list[str]]:
    return {
        "staff": ["alice", "carol"],
        "devs": ["alice", "carol", "dave"],
        "wheel": ["bob"],
    }
