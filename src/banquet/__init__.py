"""
Banquet - Multi-stage meal planning for large groups.

Stages:
- Dietary: Analyze attendee restrictions (with refinement for hard cases)
- Meal planner: Pick one catalog recipe per meal slot
- Quantities: Consolidate scaled ingredients into a shopping list
- Budget: Estimate cost and prioritize the shopping list
"""

__version__ = "1.0.0"
