"""Level thresholds and computation.

Levels are derived from cumulative points only; ``user_progress.current_level``
is a cache of ``calculate_level(total_points)``.
"""

from __future__ import annotations

LEVELS: list[dict] = [
    {"level": 1, "points_required": 0, "name": "Beginner"},
    {"level": 2, "points_required": 100, "name": "Learner"},
    {"level": 3, "points_required": 250, "name": "Student"},
    {"level": 4, "points_required": 500, "name": "Scholar"},
    {"level": 5, "points_required": 1000, "name": "Expert"},
    {"level": 6, "points_required": 2000, "name": "Master"},
    {"level": 7, "points_required": 3500, "name": "Grandmaster"},
    {"level": 8, "points_required": 5000, "name": "Legend"},
]

MAX_LEVEL = LEVELS[-1]["level"]


def calculate_level(total_points: int) -> int:
    """Highest level whose threshold is <= total_points. Negative input clamps to 1."""
    for entry in reversed(LEVELS):
        if total_points >= entry["points_required"]:
            return entry["level"]
    return 1


def get_level_name(level: int) -> str:
    for entry in LEVELS:
        if entry["level"] == level:
            return entry["name"]
    return "Beginner"


def get_points_to_next_level(total_points: int) -> int:
    """Points still missing for the next level, 0 at the top level."""
    level = calculate_level(total_points)
    if level >= MAX_LEVEL:
        return 0
    return LEVELS[level]["points_required"] - total_points


def level_info(total_points: int) -> dict:
    """Compute the full level summary shown next to a user's progress."""
    level = calculate_level(total_points)
    current = LEVELS[level - 1]
    next_level = LEVELS[level] if level < MAX_LEVEL else current

    return {
        "level": level,
        "name": current["name"],
        "points_into_level": max(total_points, 0) - current["points_required"],
        "points_to_next_level": get_points_to_next_level(total_points),
        "next_level": next_level["level"],
        "next_name": next_level["name"],
    }
