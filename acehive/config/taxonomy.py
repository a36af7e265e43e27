"""
config/taxonomy.py
──────────────────────────────────────────────────────────────────────────────
The static academic taxonomy in one place.

Degree → ordered specialisation labels, plus the fixed option lists shown by
every interface.  Pure data, no I/O; read-only for the lifetime of the process.

To add a degree: append an entry to DEGREE_SPECIALISATIONS below.
"""
from __future__ import annotations

from types import MappingProxyType

# ── Sentinel stored for a taxonomy field with no applicable value ──────────────
NONE_SENTINEL = "None"

# ── Degree → specialisations ───────────────────────────────────────────────────
DEGREE_SPECIALISATIONS: MappingProxyType[str, tuple[str, ...]] = MappingProxyType({
    "Computer Science": (
        "Core",
        "Data Science",
        "Information Technology",
        "Artificial Intelligence",
        "Cloud Computing",
        "Cyber Security",
        "Computer Networking",
        "Gaming Technology",
        "Artificial Intelligence and Machine Learning",
        "Business Systems",
        "Big Data Analytics",
        "Block Chain Technology",
        "Software Engineering",
        "Internet of Things",
    ),
    "Biotechnology": (
        "Biotechnology Core",
        "Biotechnology (Computational Biology)",
        "Biotechnology W/S in Food Technology",
        "Biotechnology W/S in Genetic Engineering",
        "Biotechnology W/S in Regenerative Medicine",
    ),
    "Electrical": (
        "Electrical & Electronics Engineering",
        "Electric Vehicle Technology",
    ),
    "Civil": (
        "Civil Engineering Core",
        "Civil Engineering with Computer Applications",
    ),
    "ECE": (
        "ECE (Electronics and Communication Engineering)",
        "Electronics & Communication Engineering",
        "Cyber Physical Systems",
        "Data Sciences",
        "Electronics and Computer Engineering",
        "VLSI Design and Technology",
    ),
    "Automobile": (
        "Core",
        "Automotive Electronics",
        "Vehicle Testing",
    ),
    "Mechanical": (
        "Core",
        "Automation and Robotics",
        "AIML (Artificial Intelligence and Machine Learning)",
        "Mechatronics Engineering Core",
        "Autonomous Driving Technology",
        "Immersive Technologies",
        "Industrial IoT",
        "Robotics",
    ),
})

DEGREES: tuple[str, ...] = tuple(DEGREE_SPECIALISATIONS)


def specialisations_for(degree: str | None) -> tuple[str, ...]:
    """Allowed specialisations for a degree; empty for unknown/blank degrees."""
    if not degree:
        return ()
    return DEGREE_SPECIALISATIONS.get(degree, ())
