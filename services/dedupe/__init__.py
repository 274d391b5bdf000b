"""Duplicate lead detection.

Components:
- Fingerprint: Normalized match keys per lead (fingerprint.py)
- Detector: Indexes and match rules (detector.py)
- Repo: Paginated lead reads (repo.py)
- Service: Pages the population through the detector (service.py)
"""

from services.dedupe.fingerprint import (
    MatchField,
    LeadFingerprint,
    normalize_plate,
    phone_digits,
    normalized_owner_name,
)
from services.dedupe.detector import (
    MatchOptions,
    DuplicateMatch,
    DuplicateCheckResult,
    DuplicateDetector,
)
from services.dedupe.repo import ILeadRepo, LeadRepo
from services.dedupe.service import IService, Service

__all__ = [
    "MatchField",
    "LeadFingerprint",
    "normalize_plate",
    "phone_digits",
    "normalized_owner_name",
    "MatchOptions",
    "DuplicateMatch",
    "DuplicateCheckResult",
    "DuplicateDetector",
    "ILeadRepo",
    "LeadRepo",
    "IService",
    "Service",
]
