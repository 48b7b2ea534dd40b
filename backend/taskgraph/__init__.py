"""
Taskgraph - task dependency graph engine with soft blocking and cascade delete.
"""

__version__ = "0.1.0"
