"""Benchmark cohorts and the canonical mapping of free-text categories.

Web forms, the JSON API, stored records and the PDF/email callers all hand
organisation metadata to the core in slightly different shapes
("financial-services", "FINANCIAL_SERVICES", "Financial Services",
"51-250", ...). Everything is normalised here, once.
"""

import logging
import re
from enum import Enum
from typing import Dict, Optional, Type, TypeVar, Union

logger = logging.getLogger(__name__)

class Industry(Enum):
    """Industry cohorts."""
    FINANCIAL_SERVICES = "FINANCIAL_SERVICES"
    HEALTHCARE = "HEALTHCARE"
    TECHNOLOGY = "TECHNOLOGY"
    MANUFACTURING = "MANUFACTURING"
    RETAIL = "RETAIL"
    GOVERNMENT = "GOVERNMENT"
    EDUCATION = "EDUCATION"
    NON_PROFIT = "NON_PROFIT"
    ENERGY = "ENERGY"
    TELECOMMUNICATIONS = "TELECOMMUNICATIONS"
    MEDIA_ENTERTAINMENT = "MEDIA_ENTERTAINMENT"
    OTHER = "OTHER"

    @property
    def label(self) -> str:
        return _INDUSTRY_LABELS.get(self, self.value.replace("_", " ").title())


class CompanySize(Enum):
    """Company size cohorts (employee count bands)."""
    STARTUP_1_50 = "STARTUP_1_50"
    SMALL_51_250 = "SMALL_51_250"
    MID_251_1000 = "MID_251_1000"
    LARGE_1001_5000 = "LARGE_1001_5000"
    ENTERPRISE_5000_PLUS = "ENTERPRISE_5000_PLUS"

    @property
    def label(self) -> str:
        return _SIZE_LABELS[self]


class Region(Enum):
    """Geographic cohorts."""
    NORTH_AMERICA = "NORTH_AMERICA"
    EUROPE = "EUROPE"
    ASIA_PACIFIC = "ASIA_PACIFIC"
    LATIN_AMERICA = "LATIN_AMERICA"
    MIDDLE_EAST_AFRICA = "MIDDLE_EAST_AFRICA"
    GLOBAL = "GLOBAL"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


_INDUSTRY_LABELS = {
    Industry.FINANCIAL_SERVICES: "Financial Services",
    Industry.NON_PROFIT: "Non-Profit",
    Industry.MEDIA_ENTERTAINMENT: "Media & Entertainment",
}

_SIZE_LABELS = {
    CompanySize.STARTUP_1_50: "1-50 employees",
    CompanySize.SMALL_51_250: "51-250 employees",
    CompanySize.MID_251_1000: "251-1,000 employees",
    CompanySize.LARGE_1001_5000: "1,001-5,000 employees",
    CompanySize.ENTERPRISE_5000_PLUS: "5,000+ employees",
}

# Aliases seen from the assessment form, the public API and older records.
# Keys are normalised with _normalise_key before lookup.
INDUSTRY_ALIASES: Dict[str, Industry] = {
    "FINANCE": Industry.FINANCIAL_SERVICES,
    "BANKING": Industry.FINANCIAL_SERVICES,
    "FINANCIAL": Industry.FINANCIAL_SERVICES,
    "HEALTH": Industry.HEALTHCARE,
    "HEALTH_CARE": Industry.HEALTHCARE,
    "TECH": Industry.TECHNOLOGY,
    "SOFTWARE": Industry.TECHNOLOGY,
    "PUBLIC_SECTOR": Industry.GOVERNMENT,
    "NONPROFIT": Industry.NON_PROFIT,
    "NOT_FOR_PROFIT": Industry.NON_PROFIT,
    "TELECOM": Industry.TELECOMMUNICATIONS,
    "MEDIA": Industry.MEDIA_ENTERTAINMENT,
    "MEDIA_AND_ENTERTAINMENT": Industry.MEDIA_ENTERTAINMENT,
}

SIZE_ALIASES: Dict[str, CompanySize] = {
    "1_50": CompanySize.STARTUP_1_50,
    "51_200": CompanySize.SMALL_51_250,
    "51_250": CompanySize.SMALL_51_250,
    "SMALL_51_200": CompanySize.SMALL_51_250,
    "201_1000": CompanySize.MID_251_1000,
    "251_1000": CompanySize.MID_251_1000,
    "MEDIUM_201_1000": CompanySize.MID_251_1000,
    "1001_5000": CompanySize.LARGE_1001_5000,
    "5000": CompanySize.ENTERPRISE_5000_PLUS,
    "5000_PLUS": CompanySize.ENTERPRISE_5000_PLUS,
    "5001": CompanySize.ENTERPRISE_5000_PLUS,
}

REGION_ALIASES: Dict[str, Region] = {
    "NA": Region.NORTH_AMERICA,
    "US": Region.NORTH_AMERICA,
    "EU": Region.EUROPE,
    "EMEA": Region.EUROPE,
    "APAC": Region.ASIA_PACIFIC,
    "LATAM": Region.LATIN_AMERICA,
    "MEA": Region.MIDDLE_EAST_AFRICA,
    "WORLDWIDE": Region.GLOBAL,
}

E = TypeVar("E", bound=Enum)

def _normalise_key(value: str) -> str:
    key = value.strip().upper().replace("&", " AND ").replace("+", "_PLUS")
    key = re.sub(r"EMPLOYEES?", "", key)
    key = key.replace(",", "")
    key = re.sub(r"[^A-Z0-9]+", "_", key)
    return key.strip("_")

def _canonical(
    value: Union[str, Enum, None],
    enum_cls: Type[E],
    aliases: Dict[str, E],
) -> Optional[E]:
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, Enum):
        value = value.value
    if not isinstance(value, str) or not value.strip():
        return None

    key = _normalise_key(value)
    if key in enum_cls.__members__:
        return enum_cls[key]
    if key in aliases:
        return aliases[key]
    key_without_and = key.replace("_AND_", "_")
    if key_without_and in enum_cls.__members__:
        return enum_cls[key_without_and]

    logger.debug("Unrecognised %s value: %r", enum_cls.__name__, value)
    return None

def canonical_industry(value: Union[str, Industry, None]) -> Optional[Industry]:
    """Map an industry slug, label or enum name to an ``Industry``."""
    return _canonical(value, Industry, INDUSTRY_ALIASES)

def canonical_company_size(value: Union[str, CompanySize, None]) -> Optional[CompanySize]:
    """Map an employee range ("51-250", "5000+") or enum name to a ``CompanySize``."""
    return _canonical(value, CompanySize, SIZE_ALIASES)

def canonical_region(value: Union[str, Region, None]) -> Optional[Region]:
    """Map a region name or common abbreviation to a ``Region``."""
    return _canonical(value, Region, REGION_ALIASES)
