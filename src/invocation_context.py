"""
Per-invocation context.

Carries the caller identity and a small cache of already-fetched domain
records through one tool invocation.  A context is created by the caller for
each invocation and passed explicitly to runners and tools; nothing here is
module-global, so concurrent invocations never observe each other's data.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from constants import DOMAINS

if TYPE_CHECKING:
    from record_source import RecordSource


@dataclass(frozen=True)
class Caller:
    id: str
    display_name: str = ""

    def label(self) -> str:
        return self.display_name or self.id


class InvocationContext:
    """Caller identity + domain data cache for a single invocation."""

    def __init__(self, caller: Caller, source: Optional["RecordSource"] = None):
        self.caller = caller
        self.source = source
        self._cache: Dict[str, Any] = {}

    def get_current_caller(self) -> Caller:
        return self.caller

    def get_cached_data(self, domain: str) -> Optional[Any]:
        return self._cache.get(_check_domain(domain))

    def set_cached_data(self, domain: str, data: Any) -> None:
        self._cache[_check_domain(domain)] = data

    def has_cached_data(self, domain: str) -> bool:
        return _check_domain(domain) in self._cache

    def __repr__(self) -> str:
        return f"InvocationContext(caller={self.caller.id!r}, cached={sorted(self._cache)})"


def _check_domain(domain: str) -> str:
    if domain not in DOMAINS:
        raise ValueError(f"Unknown analysis domain: {domain!r}")
    return domain
