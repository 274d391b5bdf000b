"""Duplicate lead detection.

Candidates are matched two ways:
  - against the existing population, through one index per enabled field
  - against each other, where the first lead (batch order) holding a value
    is canonical and every later one is its duplicate

A lead matching on several fields is counted once but every match is kept.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from db.models.lead import LeadRecord
from services.dedupe.fingerprint import LeadFingerprint, MatchField


@dataclass(frozen=True)
class MatchOptions:
    plate: bool = False
    chassis: bool = False
    phone: bool = False
    name: bool = False

    def enabled_fields(self) -> List[MatchField]:
        return [f for f in MatchField if getattr(self, f.value)]


@dataclass(frozen=True)
class DuplicateMatch:
    lead_id: str
    matched_lead_id: str
    match_field: MatchField
    match_value: str
    # True when matched_lead_id is another candidate rather than an existing lead
    in_batch: bool = False


@dataclass
class DuplicateCheckResult:
    success: bool
    error: Optional[str] = None
    total_checked: int = 0
    unique_count: int = 0
    duplicate_count: int = 0
    duplicates: List[DuplicateMatch] = field(default_factory=list)
    duplicate_lead_ids: List[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str) -> "DuplicateCheckResult":
        return cls(success=False, error=error)


def dedupe_candidates(candidates: Iterable[LeadRecord]) -> List[LeadRecord]:
    """Drop repeated lead ids, keeping first occurrence order."""
    seen = set()
    unique = []
    for lead in candidates:
        if lead.id not in seen:
            seen.add(lead.id)
            unique.append(lead)
    return unique


class DuplicateDetector:
    """Index existing leads page by page, then check a candidate batch."""

    def __init__(self, options: MatchOptions, exclude_ids: Iterable[str] = ()):
        self.fields = options.enabled_fields()
        # Candidates already in the database must not match themselves
        self._exclude = set(exclude_ids)
        self._index: Dict[MatchField, Dict[str, str]] = {f: {} for f in self.fields}
        self.indexed = 0

    def validate(self, candidates: List[LeadRecord]) -> Optional[str]:
        """Describe why a check can't run, None if it can."""
        if not self.fields:
            return "Select at least one match field"
        if not candidates:
            return "No leads to check"
        return None

    def add_existing(self, leads: Iterable[LeadRecord]) -> int:
        """Index one page of the existing population. Returns leads indexed."""
        count = 0
        for lead in leads:
            if lead.id in self._exclude:
                continue
            fingerprint = LeadFingerprint.from_lead(lead)
            for f in self.fields:
                value = fingerprint.get(f)
                if value:
                    self._index[f].setdefault(value, lead.id)
            count += 1
        self.indexed += count
        return count

    def check(self, candidates: List[LeadRecord]) -> DuplicateCheckResult:
        error = self.validate(candidates)
        if error:
            return DuplicateCheckResult.failure(error)

        candidates = dedupe_candidates(candidates)
        fingerprints = [(lead.id, LeadFingerprint.from_lead(lead)) for lead in candidates]
        matches: List[DuplicateMatch] = []
        flagged = set()

        for lead_id, fingerprint in fingerprints:
            for f in self.fields:
                value = fingerprint.get(f)
                if value and value in self._index[f]:
                    matches.append(DuplicateMatch(lead_id, self._index[f][value], f, value))
                    flagged.add(lead_id)

        for f in self.fields:
            groups: Dict[str, List[str]] = {}
            for lead_id, fingerprint in fingerprints:
                value = fingerprint.get(f)
                if value:
                    groups.setdefault(value, []).append(lead_id)
            for value, ids in groups.items():
                first = ids[0]
                for other in ids[1:]:
                    matches.append(DuplicateMatch(other, first, f, value, in_batch=True))
                    flagged.add(other)

        duplicate_ids = [lead.id for lead in candidates if lead.id in flagged]
        return DuplicateCheckResult(
            success=True,
            total_checked=len(candidates),
            unique_count=len(candidates) - len(duplicate_ids),
            duplicate_count=len(duplicate_ids),
            duplicates=matches,
            duplicate_lead_ids=duplicate_ids,
        )
