"""
Best-of-N search driver.

Runs the assignment engine repeatedly on the same input and keeps the
highest-scoring solution. Every trial gets its own generator and a fresh
Solution, so trials share no mutable state.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .assignment_engine import AssignmentEngine
from .data_models import InputData, Solution
from .fitness import evaluate


@dataclass
class TrialRecord:
    """Outcome of a single trial"""
    trial: int
    seed: int
    score: float


@dataclass
class SearchResult:
    """Best solution found and the history of all trials"""
    best_solution: Solution
    best_score: float
    best_trial: int
    trials: List[TrialRecord] = field(default_factory=list)

    @property
    def scores(self) -> List[float]:
        return [t.score for t in self.trials]

    @property
    def best_seed(self) -> int:
        return self.trials[self.best_trial].seed


def run_search(input_data: InputData,
               num_trials: int = 100,
               random_seed: Optional[int] = None,
               verbose: bool = False) -> SearchResult:
    """
    Run num_trials independent trials and keep the best

    Args:
        input_data: Input snapshot shared by all trials
        num_trials: Number of solve/evaluate rounds
        random_seed: Base seed; trial i uses random_seed + i
        verbose: Print each trial's score

    Returns:
        SearchResult with the first solution reaching the highest score
    """
    if num_trials <= 0:
        raise ValueError(f"num_trials must be positive, got: {num_trials}")

    if random_seed is None:
        random_seed = int(np.random.randint(0, 2**31))

    best_solution = None
    best_score = None
    best_trial = 0
    records = []

    for trial in range(num_trials):
        seed = random_seed + trial
        engine = AssignmentEngine(input_data, random_seed=seed)
        solution = engine.solve()
        score = evaluate(input_data, solution)

        records.append(TrialRecord(trial=trial, seed=seed, score=score))

        if best_score is None or score > best_score:
            best_solution = solution
            best_score = score
            best_trial = trial

        if verbose:
            print(f"  Trial {trial + 1}/{num_trials} (seed {seed}): {score:.3f}")

    return SearchResult(
        best_solution=best_solution,
        best_score=best_score,
        best_trial=best_trial,
        trials=records,
    )
