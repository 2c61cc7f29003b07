from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from ..contracts import validate

WILDCARD = "*"


@dataclass(frozen=True)
class LayeringPolicy:
    target: str
    allow: frozenset[str] = frozenset()
    restrict: frozenset[str] = frozenset()
    explicit: bool = True

    @classmethod
    def default(cls, target: str) -> "LayeringPolicy":
        """Unrestricted policy used for packages without an entry."""
        return cls(target=target, allow=frozenset({WILDCARD}), restrict=frozenset(), explicit=False)

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "LayeringPolicy":
        return cls(
            target=str(row["target"]).strip(),
            allow=frozenset(str(name).strip() for name in row.get("allow", ())),
            restrict=frozenset(str(name).strip() for name in row.get("restrict", ())),
        )

    @property
    def allows_all(self) -> bool:
        return WILDCARD in self.allow

    def allows(self, short_import_name: str) -> bool:
        return self.allows_all or short_import_name in self.allow

    def restricts(self, short_import_name: str) -> bool:
        return short_import_name in self.restrict

    def to_row(self) -> dict[str, object]:
        return {
            "target": self.target,
            "allow": sorted(self.allow),
            "restrict": sorted(self.restrict),
            "explicit": self.explicit,
        }


@dataclass(frozen=True)
class PolicySet:
    policies: tuple[LayeringPolicy, ...] = ()

    def resolve(self, short_name: str) -> LayeringPolicy:
        for policy in self.policies:
            if policy.target == short_name:
                return policy
        return LayeringPolicy.default(short_name)

    def duplicate_targets(self) -> list[str]:
        seen: set[str] = set()
        dupes: set[str] = set()
        for policy in self.policies:
            if policy.target in seen:
                dupes.add(policy.target)
            seen.add(policy.target)
        return sorted(dupes)

    def __len__(self) -> int:
        return len(self.policies)


def parse_policies(rows: Iterable[Mapping[str, Any]]) -> PolicySet:
    payload = [dict(row) if isinstance(row, Mapping) else row for row in rows]
    validate("layerctl.policies.v1", payload)
    return PolicySet(tuple(LayeringPolicy.from_mapping(row) for row in payload))
