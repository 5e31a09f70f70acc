"""Badge definitions awarded by run-level rules rather than by a single checkpoint.

Rules reference badges by key only; titles are display text and may change.
"""

from dataclasses import dataclass

FIRST_FIND = "first-find"
PATHFINDER = "pathfinder"
SPEEDRUNNER = "speedrunner"
BADGE_COLLECTOR = "badge-collector"


@dataclass(frozen=True)
class BadgeDefinition:
    key: str
    title: str
    description: str


DERIVED_BADGES: dict[str, BadgeDefinition] = {
    FIRST_FIND: BadgeDefinition(
        key=FIRST_FIND,
        title="First Find",
        description="Solve the first checkpoint of a hunt run",
    ),
    PATHFINDER: BadgeDefinition(
        key=PATHFINDER,
        title="Pathfinder",
        description="Complete a scavenger hunt",
    ),
    SPEEDRUNNER: BadgeDefinition(
        key=SPEEDRUNNER,
        title="Speedrunner",
        description="Complete a hunt within the speedrun time limit",
    ),
    BADGE_COLLECTOR: BadgeDefinition(
        key=BADGE_COLLECTOR,
        title="Badge Collector",
        description="Earn the configured number of different badges",
    ),
}


def get_badge_definition(key: str) -> BadgeDefinition:
    if key not in DERIVED_BADGES:
        raise KeyError(f"Unknown derived badge: {key}")
    return DERIVED_BADGES[key]


def list_badge_definitions() -> list[BadgeDefinition]:
    return list(DERIVED_BADGES.values())
