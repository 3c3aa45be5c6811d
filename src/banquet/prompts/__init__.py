"""
Banquet Prompts - Stage personas.
"""

from banquet.prompts.personas import (
    BUDGET_SPECIALIST,
    DIETARY_SPECIALIST,
    get_chef_persona,
    get_refinement_persona,
)

__all__ = [
    "BUDGET_SPECIALIST",
    "DIETARY_SPECIALIST",
    "get_chef_persona",
    "get_refinement_persona",
]
