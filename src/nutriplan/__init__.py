"""
NutriPlan - meal-plan generation with nutrition rollups and grocery lists.
"""

__version__ = "0.1.0"
