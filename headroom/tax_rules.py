# Federal Threshold Constants (2024 Final, 2025 Projected)

from types import MappingProxyType

from headroom.models import FilingStatus, TaxThresholds, ThresholdDetail, ThresholdKind

TAX_GLOBAL = {
    "year": 2025,
    "filing_status_default": FilingStatus.SINGLE,
}

# Standard Deduction (used as the default when creating a filing profile)
DEFAULT_STANDARD_DEDUCTION = 14600

STANDARD_DEDUCTIONS = {
    2024: {
        FilingStatus.SINGLE: 14600,
        FilingStatus.MARRIED_JOINT: 29200,
        FilingStatus.MARRIED_SEPARATE: 14600,
        FilingStatus.HEAD_OF_HOUSEHOLD: 21900,
    },
    2025: {
        FilingStatus.SINGLE: 15000,
        FilingStatus.MARRIED_JOINT: 30000,
        FilingStatus.MARRIED_SEPARATE: 15000,
        FilingStatus.HEAD_OF_HOUSEHOLD: 22500,
    },
}

# Status band: "approaching" once within max(floor, limit * fraction) of a limit
WARNING_BAND_FLOOR = 5000
WARNING_BAND_FRACTION = 0.10

# IRMAA (Medicare Part B/D surcharge) MAGI tier starts
IRMAA_TIERS = {
    2024: {
        FilingStatus.SINGLE: [103000, 129000, 161000, 193000, 500000],
        FilingStatus.MARRIED_JOINT: [206000, 258000, 322000, 386000, 750000],
        FilingStatus.MARRIED_SEPARATE: [103000, 129000, 161000, 193000, 500000],
        FilingStatus.HEAD_OF_HOUSEHOLD: [103000, 129000, 161000, 193000, 500000],
    },
    2025: {
        FilingStatus.SINGLE: [106000, 133000, 166000, 199000, 510000],
        FilingStatus.MARRIED_JOINT: [212000, 266000, 332000, 398000, 770000],
        FilingStatus.MARRIED_SEPARATE: [106000, 133000, 166000, 199000, 510000],
        FilingStatus.HEAD_OF_HOUSEHOLD: [106000, 133000, 166000, 199000, 510000],
    },
}

# Net Investment Income Tax (NIIT) - not indexed for inflation
NIIT_THRESHOLDS = {
    FilingStatus.SINGLE: 200000,
    FilingStatus.MARRIED_JOINT: 250000,
    FilingStatus.MARRIED_SEPARATE: 125000,
    FilingStatus.HEAD_OF_HOUSEHOLD: 200000,
}
NIIT_RATE = 0.038

# QBI (Section 199A) phase-in start. MFS and HoH use the single figure.
QBI_PHASE_IN = {
    2024: {"single": 191100, "joint": 382200},
    2025: {"single": 196000, "joint": 392000},
}

_STATUS_KEYS = {
    FilingStatus.SINGLE: "single",
    FilingStatus.MARRIED_JOINT: "mfj",
    FilingStatus.MARRIED_SEPARATE: "mfs",
    FilingStatus.HEAD_OF_HOUSEHOLD: "hoh",
}


def _irmaa_tiers(status: FilingStatus, limits) -> tuple:
    prefix = _STATUS_KEYS[status]
    return tuple(
        ThresholdDetail(
            key=f"irmaa_{prefix}_tier_{index}",
            label=f"IRMAA Tier {index + 1}",
            limit=float(limit),
            kind=ThresholdKind.MEANS_TESTED_TIER,
        )
        for index, limit in enumerate(sorted(limits))
    )


def _niit(status: FilingStatus) -> ThresholdDetail:
    if status == FilingStatus.MARRIED_JOINT:
        key = "niit_joint"
    elif status == FilingStatus.MARRIED_SEPARATE:
        key = "niit_separate"
    else:
        key = "niit_single"
    return ThresholdDetail(key=key, label="NIIT Threshold",
                           limit=float(NIIT_THRESHOLDS[status]), kind=ThresholdKind.SURTAX)


def _qbi(year: int, status: FilingStatus) -> ThresholdDetail:
    column = "joint" if status == FilingStatus.MARRIED_JOINT else "single"
    return ThresholdDetail(key=f"qbi_{column}", label="QBI Phase-in",
                           limit=float(QBI_PHASE_IN[year][column]), kind=ThresholdKind.QBI_PHASE_IN)


def _build_threshold_dataset():
    dataset = {}
    for year, by_status in IRMAA_TIERS.items():
        dataset[year] = MappingProxyType({
            status: TaxThresholds(
                means_tested_tiers=_irmaa_tiers(status, limits),
                surtax=_niit(status),
                qbi_phase_in=_qbi(year, status),
            )
            for status, limits in by_status.items()
        })
    return MappingProxyType(dataset)


# {year: {FilingStatus: TaxThresholds}}, built once at import
THRESHOLD_DATASET = _build_threshold_dataset()


def standard_deduction_for(year: int, status: FilingStatus) -> float:
    """Standard deduction for a year/status, falling back to the closest known year."""
    if year in STANDARD_DEDUCTIONS:
        return STANDARD_DEDUCTIONS[year][status]
    if not STANDARD_DEDUCTIONS:
        return DEFAULT_STANDARD_DEDUCTION
    closest = min(STANDARD_DEDUCTIONS, key=lambda y: (abs(y - year), -y))
    return STANDARD_DEDUCTIONS[closest][status]
