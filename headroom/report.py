from datetime import datetime
from typing import Any, Dict, Optional

from headroom.engine import compute_for_ledger
from headroom.errors import HeadroomError
from headroom.thresholds import thresholds_for

DISCLAIMER = "Planning estimates only - not tax or legal advice. Intended for personal use only."


def currency(value: Optional[float], cents: bool = True, missing: str = "-") -> str:
    """Dollar amount with a leading minus sign. The report shows cents, the app whole dollars."""
    if value is None:
        return missing
    sign = "-" if value < 0 else ""
    if cents:
        return f"{sign}${abs(value):,.2f}"
    return f"{sign}${abs(value):,.0f}"


def build_report(ledger, provider=None, generated_at: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Collects everything the year summary shows. Missing profile or tables
    leave the corresponding sections as None rather than failing.
    """
    profile = ledger.profile
    headroom = None
    headroom_error = None
    try:
        headroom = compute_for_ledger(ledger, provider=provider)
    except HeadroomError as e:
        headroom_error = str(e)

    thresholds = None
    if profile is not None:
        thresholds = thresholds_for(ledger.year, profile.status)

    return {
        "year": ledger.year,
        "generated_at": generated_at or datetime.now(),
        "filing_status": profile.status.value if profile else None,
        "standard_deduction": profile.standard_deduction if profile else None,
        "total_income": ledger.total_income,
        "headroom": headroom,
        "headroom_error": headroom_error,
        "thresholds": thresholds,
        "entries": [
            {"name": e.display_name, "type": e.source_type.value, "amount": e.amount}
            for e in ledger.entries
        ],
    }


def render_markdown(report: Dict[str, Any]) -> str:
    lines = [
        "# Headroom - Bracket Headroom Report",
        "",
        f"**Tax Year {report['year']}**  ",
        f"Generated {report['generated_at']:%b %d, %Y %H:%M}",
        "",
        "## Summary",
        "",
    ]

    if report["filing_status"] is not None:
        lines.append(f"- Filing Status: {report['filing_status']}")
        lines.append(f"- Standard Deduction: {currency(report['standard_deduction'])}")
    else:
        lines.append("- No filing profile set.")
    lines.append(f"- Total Income: {currency(report['total_income'])}")

    result = report["headroom"]
    if result is not None:
        upper = currency(result.bracket_upper) if result.bracket_upper is not None else "+"
        lines.append(f"- Taxable Income: {currency(result.taxable_income)}")
        lines.append(f"- Current Bracket: {result.bracket_rate:.0%} ({currency(result.bracket_lower)} - {upper})")
        if result.dollars_to_next_bracket is not None:
            lines.append(f"- **Headroom to Next Bracket: {currency(result.dollars_to_next_bracket)}**")
        else:
            lines.append("- **Headroom to Next Bracket: Top bracket**")
    else:
        lines.append("- Tax table not available for this year.")

    lines += ["", "## Thresholds Used", ""]
    thresholds = report["thresholds"]
    if thresholds is not None:
        lines.append("IRMAA Tiers:")
        lines.append("")
        for index, tier in enumerate(thresholds.means_tested_tiers):
            lines.append(f"- Tier {index + 1}: {currency(tier.limit)}")
        lines.append("")
        lines.append(f"- NIIT Threshold: {currency(thresholds.surtax.limit)}")
        lines.append(f"- QBI Phase-in: {currency(thresholds.qbi_phase_in.limit)}")
    else:
        lines.append("Set a filing profile to include IRMAA, NIIT, and QBI thresholds.")

    entries = report["entries"]
    lines += ["", f"## Income Entries ({len(entries)})", ""]
    if entries:
        lines.append("| Name | Type | Amount |")
        lines.append("| --- | --- | ---: |")
        for e in entries:
            lines.append(f"| {e['name']} | {e['type']} | {currency(e['amount'])} |")

    lines += ["", "---", "", DISCLAIMER, ""]
    return "\n".join(lines)
