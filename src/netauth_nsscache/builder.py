"""Full cache rebuild: directory -> policy -> memberships -> lines -> files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .context import CacheContext
from .errors import CacheWriteError
from .lines import group_lines, passwd_lines, shadow_lines
from .membership import resolve_members
from .models.config import CacheConfig
from .policy import filter_accounts, filter_groups
from .shells import read_shells
from .source import DirectorySource, call_source
from .writer import write_maps

logger = logging.getLogger(__name__)


@dataclass
class CacheSet:
    """Rendered map lines for one run, keyed by map kind."""

    maps: dict[str, list[str]]
    context: CacheContext

    def paths(self) -> dict[str, Path]:
        config = self.context.config
        known = {"passwd": config.passwd_path, "group": config.group_path, "shadow": config.shadow_path}
        return {kind: known[kind] for kind in self.maps}


def build_context(
    source: DirectorySource, config: CacheConfig, shells: list[str] | None = None
) -> CacheContext:
    """Fetch and filter directory data, then resolve memberships.

    ``shells`` defaults to the contents of ``config.shells_file``.
    """
    if shells is None:
        shells = read_shells(config.shells_file)
    ctx = CacheContext(config=config, shells=frozenset(shells))

    filter_groups(ctx, call_source("groups", lambda: source.list_groups("*")))
    filter_accounts(ctx, call_source("entities", lambda: source.list_entities("*")))
    resolve_members(ctx, source)
    return ctx


def render_caches(ctx: CacheContext) -> CacheSet:
    maps = {"passwd": passwd_lines(ctx), "group": group_lines(ctx)}
    if ctx.config.write_shadow:
        maps["shadow"] = shadow_lines(ctx)
    return CacheSet(maps=maps, context=ctx)


def build_caches(source: DirectorySource, config: CacheConfig, shells: list[str] | None = None) -> CacheSet:
    return render_caches(build_context(source, config, shells))


def write_caches(caches: CacheSet) -> None:
    config = caches.context.config
    try:
        config.out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise CacheWriteError([(config.out_dir, exc)]) from exc
    write_maps(caches.maps, caches.paths(), config.file_mode)


def update_caches(source: DirectorySource, config: CacheConfig, shells: list[str] | None = None) -> CacheSet:
    """Rebuild and write every cache file in one go."""
    caches = build_caches(source, config, shells)
    write_caches(caches)
    return caches
