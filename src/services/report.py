from __future__ import annotations

from typing import List

from models import PreferenceSummary, RankedRestaurant


def build_report(summary: PreferenceSummary, ranked: List[RankedRestaurant], radius_miles: float) -> str:
    top_votes = summary.votes.get(summary.dominant_cuisine, 0)
    lines = [
        "## Today's Lunch",
        "",
        f"- Team size: {summary.team_size}",
        f"- Most popular: {summary.dominant_cuisine.capitalize()} ({top_votes} votes)",
        f"- Hunger: {summary.dominant_hunger or 'Not specified'}",
        f"- Flavor: {summary.dominant_flavor or 'Not specified'}",
        f"- Mood: {summary.dominant_mood or 'Not specified'}",
        f"- Search radius: {radius_miles:.1f} miles",
        "",
    ]

    if not ranked:
        lines.append(f"No {summary.dominant_cuisine} restaurants found within {radius_miles:.0f} miles.")
        return "\n".join(lines)

    lines.append("### Top Picks")
    for idx, item in enumerate(ranked, start=1):
        r = item.restaurant
        score = f"{item.match_score:.0f}%" if item.match_score is not None else "n/a"
        lines += [
            f"#### {idx}. {r.name}",
            f"- Address: {r.address}",
            f"- Distance: {r.distance}",
            f"- Rating: {r.rating:.1f} | Price: {r.price_level} | Cuisine: {r.cuisine}",
            f"- Team match: {score}",
        ]
        exp = item.explanation
        if exp is not None:
            lines.append(f"- Why: {exp.team_consensus}")
            lines.extend(f"  * {m.name}: {m.match}" for m in exp.per_person_matches)
            if exp.conflicts:
                lines.append("- Heads up: " + "; ".join(exp.conflicts))
            if exp.dietary_insights:
                lines.append(f"- Dietary notes: {exp.dietary_insights}")
        lines.append("")

    return "\n".join(lines)
