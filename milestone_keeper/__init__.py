"""
Milestone Keeper

Keeps the recurring "global milestones" of a GitHub repository in shape:
closes milestones whose work is done and creates the next instance of every
recurring milestone before it falls due.
"""

__version__ = "1.0.0"
__author__ = "Milestone Keeper Team"
