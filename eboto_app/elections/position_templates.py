"""Starter position lists offered when an election is created."""

from dataclasses import dataclass

NO_TEMPLATE = "none"


@dataclass(frozen=True, slots=True)
class PositionTemplate:
    id: str
    name: str
    positions: tuple[str, ...]


POSITION_TEMPLATES: tuple[PositionTemplate, ...] = (
    PositionTemplate(
        id="student-council",
        name="Student Council",
        positions=(
            "President",
            "Vice President",
            "Secretary",
            "Treasurer",
            "Auditor",
            "Public Relations Officer",
        ),
    ),
    PositionTemplate(
        id="student-organization",
        name="Student Organization",
        positions=(
            "President",
            "Vice President for Internal Affairs",
            "Vice President for External Affairs",
            "Secretary",
            "Treasurer",
        ),
    ),
    PositionTemplate(
        id="class-officers",
        name="Class Officers",
        positions=(
            "President",
            "Vice President",
            "Secretary",
            "Treasurer",
            "Representative",
        ),
    ),
)


def template_position_names(template_id: str) -> tuple[str, ...]:
    """Return the positions for ``template_id``; unknown ids and ``"none"`` give an empty tuple."""
    if template_id == NO_TEMPLATE:
        return ()
    for template in POSITION_TEMPLATES:
        if template.id == template_id:
            return template.positions
    return ()
