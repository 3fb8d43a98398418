"""
Referral code resolution.

Referral codes are typed by hand from a code shared by a secretariat
member, so typos are common. Resolution has three steps:

1. Normalize: strip, uppercase, drop everything outside A-Z0-9.
   Codes that are empty after normalization are treated as "not entered".
2. Validate: a normalized code is valid iff it exists verbatim in the
   registry.
3. Suggest: for each invalid code, rank registry entries by Levenshtein
   distance and keep the closest ones within a fixed threshold. Ties keep
   registry insertion order, so the result is deterministic.

Resolution never raises for bad codes; invalid codes come back as data and
the committer decides what to do with them.
"""

import json
import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from .models import InvalidReferralCode, ReferralCodeEntry, ReferralResolution

logger = logging.getLogger(__name__)

_DISALLOWED = re.compile(r"[^A-Z0-9]")

# Envelope locations that may hold referral codes, probed in order.
_REFERRAL_LOCATIONS = (
    (),
    ("delegateData",),
    ("chairData",),
    ("adminData",),
)


def normalize_referral_code(raw: str) -> str:
    """Trim, uppercase and strip characters outside A-Z0-9."""
    return _DISALLOWED.sub("", raw.strip().upper())


def levenshtein(a: str, b: str) -> int:
    """Edit distance with unit-cost insert, delete and substitute."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def collect_referral_codes(envelope: Mapping[str, Any]) -> list[Any]:
    """
    Find the raw referral code list in a submission envelope.

    Clients have sent codes both at the top level and nested inside the
    role sub-object, so every location is probed and the first list wins.
    """
    for path in _REFERRAL_LOCATIONS:
        container: Any = envelope
        for key in path:
            container = container.get(key) if isinstance(container, Mapping) else None
        if isinstance(container, Mapping) and isinstance(container.get("referralCodes"), list):
            return container["referralCodes"]
    return []


class ReferralRegistry:
    """
    Read-only mapping of normalized referral code to owner.

    Loaded once at startup and shared between requests.
    """

    def __init__(self, entries: Iterable[ReferralCodeEntry]) -> None:
        self._entries: dict[str, ReferralCodeEntry] = {}
        for entry in entries:
            code = normalize_referral_code(entry.code)
            if not code:
                raise ValueError(f"Referral code {entry.code!r} is empty after normalization")
            if code in self._entries:
                raise ValueError(f"Duplicate referral code: {code}")
            self._entries[code] = ReferralCodeEntry(code=code, owner=entry.owner)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "ReferralRegistry":
        return cls(ReferralCodeEntry(code=code, owner=owner) for code, owner in mapping.items())

    @classmethod
    def from_json_file(cls, path: str | Path) -> "ReferralRegistry":
        """
        Load the registry from JSON.

        Accepts either {"CODE": "Owner", ...} or
        [{"code": "CODE", "owner": "Owner"}, ...].
        """
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(raw, dict):
            registry = cls.from_mapping(raw)
        else:
            registry = cls(ReferralCodeEntry(code=item["code"], owner=item["owner"]) for item in raw)
        logger.info("Loaded %d referral code(s) from %s", len(registry), path)
        return registry

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, code: object) -> bool:
        return code in self._entries

    def get(self, code: str) -> ReferralCodeEntry | None:
        return self._entries.get(code)

    def entries(self) -> tuple[ReferralCodeEntry, ...]:
        """All entries in insertion order."""
        return tuple(self._entries.values())


class ReferralResolver:
    """Normalizes, validates and suggests referral codes against a registry."""

    def __init__(
        self,
        registry: ReferralRegistry,
        suggestion_limit: int = 3,
        max_distance: int = 2,
    ) -> None:
        self.registry = registry
        self.suggestion_limit = suggestion_limit
        self.max_distance = max_distance

    def resolve(self, raw_codes: Iterable[Any]) -> ReferralResolution:
        """
        Resolve a batch of raw codes.

        Non-string entries and codes that normalize to "" are dropped.
        Duplicates collapse to their first occurrence.
        """
        unique: dict[str, None] = {}
        for raw in raw_codes:
            if not isinstance(raw, str):
                continue
            code = normalize_referral_code(raw)
            if code:
                unique.setdefault(code, None)

        valid = tuple(code for code in unique if code in self.registry)
        invalid = tuple(
            InvalidReferralCode(code=code, suggestions=self.suggest(code))
            for code in unique
            if code not in self.registry
        )
        return ReferralResolution(valid_codes=valid, invalid_codes=invalid)

    def is_valid(self, raw: str) -> bool:
        return normalize_referral_code(raw) in self.registry

    def lookup(self, raw: str) -> str | None:
        """Return the owner of a code, or None if it is not registered."""
        entry = self.registry.get(normalize_referral_code(raw))
        return entry.owner if entry else None

    def suggest(self, code: str, limit: int | None = None) -> tuple[ReferralCodeEntry, ...]:
        """Closest registry entries within max_distance, best first."""
        limit = self.suggestion_limit if limit is None else limit
        normalized = normalize_referral_code(code)
        scored = []
        for position, entry in enumerate(self.registry.entries()):
            distance = levenshtein(normalized, entry.code)
            if distance <= self.max_distance:
                scored.append((distance, position, entry))
        scored.sort(key=lambda item: (item[0], item[1]))
        return tuple(entry for _, _, entry in scored[:limit])

    def autocorrect(self, raw: str) -> ReferralCodeEntry | None:
        """
        Return the unique close match for an unregistered code.

        Interactive callers use this to rewrite a field in place; None
        when the code is already valid, empty, or ambiguous.
        """
        code = normalize_referral_code(raw)
        if not code or code in self.registry:
            return None
        candidates = self.suggest(code, limit=2)
        return candidates[0] if len(candidates) == 1 else None
