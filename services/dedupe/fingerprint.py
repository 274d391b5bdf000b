"""Lead fingerprints: the normalized keys leads are matched on."""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from db.models.lead import LeadRecord
from lib.names import normalize_name

MIN_PHONE_DIGITS = 8
MIN_NAME_LENGTH = 4


class MatchField(str, Enum):
    PLATE = "plate"
    CHASSIS = "chassis"
    PHONE = "phone"
    NAME = "name"


def normalize_plate(value: Optional[str]) -> Optional[str]:
    """Upper-case, whitespace removed. Also used for chassis numbers."""
    key = "".join(str(value or "").split()).upper()
    return key or None


def phone_digits(phone: Optional[str]) -> Optional[str]:
    """Digits only; too short to identify anyone means None."""
    digits = re.sub(r"\D", "", phone or "")
    return digits if len(digits) >= MIN_PHONE_DIGITS else None


def normalized_owner_name(name: Optional[str]) -> Optional[str]:
    normalized = normalize_name(name)
    return normalized if len(normalized) >= MIN_NAME_LENGTH else None


@dataclass(frozen=True)
class LeadFingerprint:
    plate: Optional[str] = None
    chassis: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_lead(cls, lead: LeadRecord) -> "LeadFingerprint":
        return cls(
            plate=normalize_plate(lead.reg_nr),
            chassis=normalize_plate(lead.chassis_nr),
            phone=phone_digits(lead.phone),
            name=normalized_owner_name(lead.owner_name),
        )

    def get(self, field: MatchField) -> Optional[str]:
        return getattr(self, field.value)
