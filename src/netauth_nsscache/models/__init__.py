from .config import CacheConfig, MembershipMode
from .directory import Account, Group

__all__ = ["Account", "CacheConfig", "Group", "MembershipMode"]
