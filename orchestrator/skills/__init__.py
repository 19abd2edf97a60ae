"""Skill package exports."""

from .appointments import SKILLS as APPOINTMENT_SKILLS
from .banking import SKILLS as BANKING_SKILLS
from .healthcare import SKILLS as HEALTHCARE_SKILLS
from .registry import SkillHandler, SkillRegistry

BUILTIN_SKILLS = {**BANKING_SKILLS, **APPOINTMENT_SKILLS, **HEALTHCARE_SKILLS}


def register_builtin_skills(registry: SkillRegistry) -> SkillRegistry:
    """Register every handler the built-in domain documents reference."""

    registry.register_many(BUILTIN_SKILLS)
    return registry


__all__ = [
    "BUILTIN_SKILLS",
    "SkillHandler",
    "SkillRegistry",
    "register_builtin_skills",
]
