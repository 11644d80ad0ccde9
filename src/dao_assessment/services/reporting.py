"""Leaderboard reports and exports."""

from __future__ import annotations

import asyncio
import csv
import json
from pathlib import Path

import structlog
from tabulate import tabulate

from dao_assessment.models import TRAITS
from dao_assessment.scoring import LeaderboardEntry
from dao_assessment.scoring.aggregation import Score

logger = structlog.get_logger()


def format_score(value: Score | None) -> str:
    """Render a score, keeping half points and dropping a trailing .0."""
    if value is None:
        return "-"
    if isinstance(value, float) and not value.is_integer():
        return f"{value:.1f}"
    return str(int(value))


def leaderboard_rows(entries: list[LeaderboardEntry]) -> list[list[str | int]]:
    """Table rows: rank, candidate, total, assessments, then one column per trait."""
    rows: list[list[str | int]] = []
    for entry in entries:
        scores = entry.score.scores or {}
        rows.append(
            [
                entry.rank,
                entry.candidate.name,
                format_score(entry.score.total_score),
                entry.score.count,
                *(format_score(scores.get(trait)) for trait in TRAITS),
            ]
        )
    return rows


LEADERBOARD_HEADERS = ("Rank", "Candidate", "Total", "Assessments", *(t.title() for t in TRAITS))


def render_leaderboard(entries: list[LeaderboardEntry], title: str = "Leaderboard") -> str:
    """Markdown leaderboard.

    Args:
        entries: Ranked entries.
        title: Report title (markdown heading).

    Returns:
        Markdown report content.
    """
    lines = [f"# {title}", ""]
    if not entries:
        lines.append("No active candidates.")
    else:
        lines.append(
            tabulate(leaderboard_rows(entries), headers=LEADERBOARD_HEADERS, tablefmt="github")
        )
    return "\n".join(lines)


async def export_leaderboard(entries: list[LeaderboardEntry], output_dir: Path) -> list[Path]:
    """Write leaderboard.md, leaderboard.csv and leaderboard.json.

    Args:
        entries: Ranked entries.
        output_dir: Directory to write into (created if missing).

    Returns:
        Paths of the written files.
    """

    def _save() -> list[Path]:
        output_dir.mkdir(parents=True, exist_ok=True)

        md_path = output_dir / "leaderboard.md"
        md_path.write_text(render_leaderboard(entries) + "\n", encoding="utf-8")

        csv_path = output_dir / "leaderboard.csv"
        with csv_path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(
                ["rank", "candidate_id", "name", "total_score", "assessments", *TRAITS]
            )
            for entry in entries:
                scores = entry.score.scores or {}
                writer.writerow(
                    [
                        entry.rank,
                        entry.candidate.id,
                        entry.candidate.name,
                        entry.score.ranking_total,
                        entry.score.count,
                        *(scores.get(trait, "") for trait in TRAITS),
                    ]
                )

        json_path = output_dir / "leaderboard.json"
        with json_path.open("w", encoding="utf-8") as f:
            json.dump([entry.to_dict() for entry in entries], f, indent=2)

        logger.info("exported_leaderboard", path=str(output_dir), candidates=len(entries))
        return [md_path, csv_path, json_path]

    return await asyncio.to_thread(_save)
