"""Directory sources the cache builder can read from.

The remote NetAuth RPC client lives outside this package; anything that
implements :class:`DirectorySource` can feed the builder.  The YAML snapshot
source is what the CLI uses for offline builds and what the tests use as a
realistic stand-in for the server.
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol, TypeVar

import yaml
from pydantic import ValidationError

from .errors import DirectorySourceError
from .models.directory import Account, Group

logger = logging.getLogger(__name__)

R = TypeVar("R")


class DirectorySource(Protocol):
    def list_groups(self, pattern: str = "*") -> list[Group]: ...

    def list_entities(self, pattern: str = "*") -> list[Account]: ...

    def list_group_members(self, group: str, include_indirect: bool) -> list[Account]: ...

    def list_entity_groups(self, entity_id: str, include_indirect: bool) -> list[Group]: ...


class YamlDirectorySource:
    """Directory snapshot loaded from a YAML document.

    Expected layout::

        groups:
          - {name: staff, number: 2000, members: [alice], includes: [ops]}
        entities:
          - {id: alice, number: 2001, primary_group: staff, shell: /bin/bash}

    ``includes`` names groups whose members are indirect members of the
    including group.  Indirect resolution follows includes transitively.
    """

    def __init__(self, groups: list[Group], entities: list[Account]) -> None:
        self._groups = {g.name: g for g in groups}
        self._entities = {e.id: e for e in entities}

    @classmethod
    def from_file(cls, path: str | Path) -> YamlDirectorySource:
        try:
            with open(path, encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise DirectorySourceError(f"Cannot read directory snapshot {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise DirectorySourceError(f"Invalid directory snapshot: {path} (expected YAML mapping)")
        return cls.from_dict(raw, origin=str(path))

    @classmethod
    def from_dict(cls, raw: dict[str, Any], origin: str = "<dict>") -> YamlDirectorySource:
        try:
            groups = [Group.model_validate(g) for g in raw.get("groups") or []]
            entities = [Account.model_validate(e) for e in raw.get("entities") or []]
        except ValidationError as exc:
            raise DirectorySourceError(f"Invalid directory snapshot {origin}: {exc}") from exc
        logger.debug("Loaded %d groups and %d entities from %s", len(groups), len(entities), origin)
        return cls(groups, entities)

    # -- DirectorySource ----------------------------------------------------

    def list_groups(self, pattern: str = "*") -> list[Group]:
        return [g.model_copy(deep=True) for g in self._groups.values() if fnmatch.fnmatchcase(g.name, pattern)]

    def list_entities(self, pattern: str = "*") -> list[Account]:
        return [e.model_copy(deep=True) for e in self._entities.values() if fnmatch.fnmatchcase(e.id, pattern)]

    def list_group_members(self, group: str, include_indirect: bool) -> list[Account]:
        if group not in self._groups:
            raise DirectorySourceError(f"Unknown group: {group}")
        names = self._expand(group) if include_indirect else [group]
        ids: dict[str, None] = {}
        for name in names:
            for member in self._groups[name].members:
                ids[member] = None
        return [self._entities[i].model_copy(deep=True) for i in ids if i in self._entities]

    def list_entity_groups(self, entity_id: str, include_indirect: bool) -> list[Group]:
        if entity_id not in self._entities:
            raise DirectorySourceError(f"Unknown entity: {entity_id}")
        out = []
        for name, group in self._groups.items():
            names = self._expand(name) if include_indirect else [name]
            if any(entity_id in self._groups[n].members for n in names):
                out.append(group.model_copy(deep=True))
        return out

    def _expand(self, group: str) -> list[str]:
        """Return ``group`` and every group reachable through includes."""
        seen: list[str] = []
        stack = [group]
        while stack:
            name = stack.pop()
            if name in seen or name not in self._groups:
                continue
            seen.append(name)
            stack.extend(self._groups[name].includes)
        return seen


def call_source(label: str, call: Callable[[], R]) -> R:
    """Run one directory query, reporting any failure as a source error."""
    try:
        return call()
    except DirectorySourceError:
        raise
    except Exception as exc:
        raise DirectorySourceError(f"Directory query failed for {label}: {exc}") from exc
