"""Build NSS files-backend caches and their indexes from a NetAuth directory."""

from netauth_nsscache.builder import CacheSet, build_caches, build_context, render_caches, update_caches, write_caches
from netauth_nsscache.context import CacheContext
from netauth_nsscache.errors import (
    CacheWriteError,
    ConfigError,
    DirectorySourceError,
    IndexFormatError,
    NssCacheError,
)
from netauth_nsscache.index import build_index, lookup_offset, read_index, serialize_index
from netauth_nsscache.models import Account, CacheConfig, Group, MembershipMode
from netauth_nsscache.source import DirectorySource, YamlDirectorySource

__all__ = [
    "Account",
    "CacheConfig",
    "CacheContext",
    "CacheSet",
    "CacheWriteError",
    "ConfigError",
    "DirectorySource",
    "DirectorySourceError",
    "Group",
    "IndexFormatError",
    "MembershipMode",
    "NssCacheError",
    "YamlDirectorySource",
    "build_caches",
    "build_context",
    "build_index",
    "lookup_offset",
    "read_index",
    "render_caches",
    "serialize_index",
    "update_caches",
    "write_caches",
]
