"""Per-run state shared by the cache building stages."""

from __future__ import annotations

from dataclasses import dataclass, field

from .models.config import CacheConfig
from .models.directory import Account, Group


@dataclass
class CacheContext:
    """Everything one rebuild knows about the directory.

    Built fresh for every run and handed to each stage in turn; nothing here
    outlives the run.
    """

    config: CacheConfig
    shells: frozenset[str] = frozenset()

    groups: dict[str, Group] = field(default_factory=dict)
    # name -> gid shortcut used when rendering primary groups
    gids: dict[str, int] = field(default_factory=dict)
    accounts: dict[str, Account] = field(default_factory=dict)
    members: dict[str, set[str]] = field(default_factory=dict)

    dropped_groups: list[str] = field(default_factory=list)
    dropped_accounts: list[str] = field(default_factory=list)

    def sorted_groups(self) -> list[Group]:
        return sorted(self.groups.values(), key=lambda g: (g.number, g.name))

    def sorted_accounts(self) -> list[Account]:
        return sorted(self.accounts.values(), key=lambda a: (a.number, a.id))
