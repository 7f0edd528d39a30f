"""
Fitness Evaluation and Reporting

Scores a completed Solution against the input's preference data, and
provides a detailed breakdown of the solution's quality.
"""

from collections import Counter
from typing import Any, Dict, List

import numpy as np

from .collision import find_collisions
from .data_models import Activity, InputData, Person, Preference, Solution


PREFERENCE_POINTS = {
    Preference.MUST_HAVE: 2,
    Preference.PREFERRED: 1,
}

SCORE_SCALE = 20.0


def evaluate_person(person: Person, solution: Solution) -> int:
    """Sum of 2 per honoured must-have and 1 per honoured preferred activity"""
    assigned = set(solution.get_person_assignments(person.id))
    return sum(
        PREFERENCE_POINTS[p.preference]
        for p in person.preferences_of(Preference.MUST_HAVE, Preference.PREFERRED)
        if p.activity_id in assigned
    )


def evaluate_activity(activity: Activity, solution: Solution) -> int:
    """1 if the activity reaches its minimum headcount, else 0"""
    return 1 if solution.headcount(activity.id) >= activity.min_person_count else 0


def evaluate(input_data: InputData, solution: Solution) -> float:
    """
    Score a solution.

    (mean(person scores) - population stddev(person scores))
        * mean(activity scores) * 20

    Rewards high and consistent preference satisfaction, and separately
    rewards meeting minimum staffing. Pure and deterministic.
    """
    person_scores = [evaluate_person(p, solution) for p in input_data.persons()]
    activity_scores = [evaluate_activity(a, solution) for a in input_data.activities()]

    if not person_scores or not activity_scores:
        return 0.0

    person_mean = np.mean(person_scores)
    person_stddev = np.std(person_scores)
    activity_mean = np.mean(activity_scores)

    return float((person_mean - person_stddev) * activity_mean * SCORE_SCALE)


class SolutionMetrics:
    """Detailed quality analysis of a solution"""

    def __init__(self, input_data: InputData):
        self.input_data = input_data

    def analyze_solution(self, solution: Solution) -> Dict[str, Any]:
        """
        Comprehensive analysis of a solution

        Returns:
            Dictionary containing all metrics and analysis results
        """
        person_scores = {p.id: evaluate_person(p, solution) for p in self.input_data.persons()}
        scores = list(person_scores.values())

        return {
            'person_scores': person_scores,
            'person_mean': float(np.mean(scores)) if scores else 0.0,
            'person_stddev': float(np.std(scores)) if scores else 0.0,
            'activity_mean': self._activity_mean(solution),
            'assignment_histogram': self._assignment_histogram(solution),
            'staffing': self._analyze_staffing(solution),
            'collisions': self._find_collisions(solution),
            'cant_have_violations': self._find_cant_have_violations(solution),
            'overall_score': evaluate(self.input_data, solution),
        }

    def _activity_mean(self, solution: Solution) -> float:
        scores = [evaluate_activity(a, solution) for a in self.input_data.activities()]
        return float(np.mean(scores)) if scores else 0.0

    def _assignment_histogram(self, solution: Solution) -> Dict[int, int]:
        """Number of persons per assignment count"""
        counts = Counter(
            len(solution.get_person_assignments(p.id)) for p in self.input_data.persons()
        )
        return dict(sorted(counts.items()))

    def _analyze_staffing(self, solution: Solution) -> Dict[str, List[Dict[str, Any]]]:
        understaffed = []
        overfilled = []

        for activity in self.input_data.activities():
            missing = solution.missing_persons_count(activity)
            entry = {
                'activity_id': activity.id,
                'name': activity.name,
                'headcount': solution.headcount(activity.id),
                'min_person_count': activity.min_person_count,
                'missing': missing,
            }
            if missing > 0:
                understaffed.append(entry)
            elif missing < 0:
                overfilled.append(entry)

        return {'understaffed': understaffed, 'overfilled': overfilled}

    def _find_collisions(self, solution: Solution) -> List[Dict[str, Any]]:
        collisions = []
        for person in self.input_data.persons():
            held = solution.held_activities(self.input_data, person.id)
            for index, activity in find_collisions(held):
                collisions.append({
                    'person_id': person.id,
                    'activity_id': activity.id,
                    'position': index,
                })
        return collisions

    def _find_cant_have_violations(self, solution: Solution) -> List[Dict[str, int]]:
        excluded = {
            person.id: {p.activity_id for p in person.preferences_of(Preference.CANT_HAVE)}
            for person in self.input_data.persons()
        }

        violations = []
        for person_id, activity_id in solution.assignment_pairs():
            if activity_id in excluded.get(person_id, ()):
                violations.append({'person_id': person_id, 'activity_id': activity_id})
        return violations


def print_solution_report(metrics: Dict[str, Any], input_data: InputData = None) -> str:
    """Generate a human-readable solution quality report"""
    lines = []
    lines.append("=" * 60)
    lines.append("ACTIVITY PLACEMENT QUALITY REPORT")
    lines.append("=" * 60)
    lines.append(f"Overall Score: {metrics['overall_score']:.3f}")
    lines.append(f"  Person score mean: {metrics['person_mean']:.3f}")
    lines.append(f"  Person score stddev: {metrics['person_stddev']:.3f}")
    lines.append(f"  Activities at minimum: {metrics['activity_mean']:.3f}")
    lines.append("")

    lines.append("ASSIGNMENTS PER PERSON:")
    for count, persons in metrics['assignment_histogram'].items():
        lines.append(f"  {count} activities: {persons} persons")
    lines.append("")

    lines.append("STAFFING:")
    understaffed = metrics['staffing']['understaffed']
    if understaffed:
        for entry in understaffed:
            lines.append(f"  {entry['name']}: {entry['headcount']}/{entry['min_person_count']} "
                         f"(missing {entry['missing']})")
    else:
        lines.append("  All activities reach their minimum headcount")
    for entry in metrics['staffing']['overfilled']:
        lines.append(f"  {entry['name']}: over-filled by {-entry['missing']}")
    lines.append("")

    if metrics['collisions'] or metrics['cant_have_violations']:
        lines.append("VIOLATIONS:")
        for c in metrics['collisions']:
            name = _person_name(input_data, c['person_id'])
            lines.append(f"  {name}: activity {c['activity_id']} collides (position {c['position']})")
        for v in metrics['cant_have_violations']:
            name = _person_name(input_data, v['person_id'])
            lines.append(f"  {name}: assigned excluded activity {v['activity_id']}")
    else:
        lines.append("CONSTRAINTS: No collisions, no excluded activities assigned")

    lines.append("=" * 60)

    return "\n".join(lines)


def _person_name(input_data: InputData, person_id: int) -> str:
    if input_data is None:
        return f"person {person_id}"
    return input_data.get_person(person_id).name
