from __future__ import annotations

from numbers import Real
from typing import TYPE_CHECKING, Any, List, Optional

if TYPE_CHECKING:
    from groundwater_chatbot.core.query_executor import QueryResult

# (upper bound exclusive, label) in ascending order; anything above the last
# bound is over-exploited.
STAGE_BANDS = [
    (70.0, "🟢 Safe zone - Good groundwater availability"),
    (90.0, "🟡 Semi-critical - Moderate groundwater stress"),
    (100.0, "🟠 Critical - High groundwater stress"),
]
OVER_EXPLOITED = "🔴 Over-exploited - Severe groundwater depletion"

EXPORT_HINT = '📥 **Export Options**: Type "export csv" or "export json" to download this data.'


def format_number(value: Any) -> str:
    """
    Compact display for a volume figure.

    None -> '—', >= 1000 -> one decimal with a K suffix, other numbers ->
    two decimals. Anything else is shown as-is.
    """
    if value is None:
        return "—"
    if isinstance(value, Real) and not isinstance(value, bool):
        if value >= 1000:
            return f"{value / 1000:.1f}K"
        return f"{value:.2f}"
    return str(value)


def interpret_stage(stage: Optional[float]) -> Optional[str]:
    """
    Map a stage-of-extraction percentage onto its categorisation band.

      - < 70   safe
      - < 90   semi-critical
      - < 100  critical
      - else   over-exploited
    """
    if stage is None:
        return None
    for bound, label in STAGE_BANDS:
        if stage < bound:
            return label
    return OVER_EXPLOITED


def format_result(result: "QueryResult") -> str:
    """
    Render a QueryResult as a chat message.

    One block per assessment year, then an interpretation of the most recent
    year's stage when the service reported one, then the export hint.
    """
    lines: List[str] = [f"📊 Groundwater Data for {result.location_text}", ""]

    for rec in result.years:
        stage = f"{rec.stage_percent}%" if rec.stage_percent is not None else "—"
        lines.append(f" **{rec.year}**")
        lines.append(f"   💧 Annual Extractable: {format_number(rec.annual_extractable)} BCM")
        lines.append(f"   🚰 Total Extraction: {format_number(rec.total_extraction)} BCM")
        lines.append(f"   📈 Groundwater Stage: {stage}")
        lines.append(f"   🏷️  Category: {rec.categorization or 'Unknown'}")
        lines.append("")

    if result.years:
        interpretation = interpret_stage(result.years[-1].stage_percent)
        if interpretation:
            lines.append(f"💡 **Interpretation**: {interpretation}")

    lines.append("")
    lines.append(EXPORT_HINT)
    return "\n".join(lines).strip()
