"""
Activity Placement - Camp Activity Assignment System

Assigns people to scheduled activities under module/time-slot exclusivity
rules and personal preferences, and scores the result.
"""

__version__ = "1.0.0"
__author__ = "Activity Placement Team"

# Export main classes for easy importing
from .data_models import (
    Activity,
    Block,
    InputData,
    Module,
    Person,
    PersonPreference,
    Preference,
    Solution,
    UnknownActivityError
)

from .collision import collides
from .assignment_engine import AssignmentEngine, NoEligibleActivityError, solve
from .fitness import SolutionMetrics, evaluate, print_solution_report
from .search import SearchResult, TrialRecord, run_search
from .config_loader import ConfigurationError, create_input_from_config, load_config, load_input

__all__ = [
    'Activity',
    'Block',
    'InputData',
    'Module',
    'Person',
    'PersonPreference',
    'Preference',
    'Solution',
    'UnknownActivityError',
    'collides',
    'AssignmentEngine',
    'NoEligibleActivityError',
    'solve',
    'SolutionMetrics',
    'evaluate',
    'print_solution_report',
    'SearchResult',
    'TrialRecord',
    'run_search',
    'ConfigurationError',
    'create_input_from_config',
    'load_config',
    'load_input'
]
