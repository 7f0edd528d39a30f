"""
Multi-Stage Activity Assignment Engine

Greedy, randomized heuristic that builds a Solution for one input snapshot
in four ordered stages:

    Stage 1: persons with at most two must-haves get them (fallback on collision)
    Stage 2: persons with more than two must-haves get the best-fitting pair
    Stage 3: coverage - everybody reaches one, then two activities
    Stage 4: two unconditional extra passes over every person

The activity's missing-persons-count (minimum headcount minus current
headcount) is the priority signal for every greedy choice.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from .collision import collides
from .data_models import (
    Activity, InputData, Module, Person, Preference, Solution
)


class NoEligibleActivityError(RuntimeError):
    """Raised when no activity at all can be added for a person"""
    pass


class AssignmentEngine:
    """Four-stage assignment pipeline over one immutable input snapshot"""

    def __init__(self,
                 input_data: InputData,
                 random_seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None,
                 verbose: bool = False):
        """
        Initialize assignment engine

        Args:
            input_data: Activities and persons for this planning run
            random_seed: Seed for the engine's own generator (ignored if rng is given)
            rng: Explicit random generator, lets callers pin outcomes
            verbose: Print the ledger after every stage
        """
        self.input_data = input_data
        self.random_seed = random_seed
        self.rng = rng if rng is not None else np.random.default_rng(random_seed)
        self.verbose = verbose

    def solve(self) -> Solution:
        """
        Run all four stages on a fresh Solution

        Returns:
            Completed Solution

        Raises:
            NoEligibleActivityError: if some person cannot receive any activity
        """
        solution = Solution()

        self._stage_1_few_must_haves(solution)
        self._debug("STAGE 1", solution)

        self._stage_2_many_must_haves(solution)
        self._debug("STAGE 2", solution)

        self._stage_3_coverage(solution)

        self._stage_4_extra_passes(solution)

        return solution

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _stage_1_few_must_haves(self, solution: Solution):
        """Stage 1: persons with at most two must-haves, in input order"""
        candidates = [(p, self._must_have_activities(p)) for p in self.input_data.persons()]
        for person, must_haves in candidates:
            if len(must_haves) <= 2:
                self._assign_must_haves(solution, person, must_haves)

    def _stage_2_many_must_haves(self, solution: Solution):
        """Stage 2: persons with more than two must-haves, in random order"""
        candidates = [(p, self._must_have_activities(p)) for p in self.input_data.persons()]
        candidates = [(p, mhs) for p, mhs in candidates if len(mhs) > 2]
        self.rng.shuffle(candidates)

        for person, must_haves in candidates:
            self._assign_must_haves(solution, person, must_haves)

    def _stage_3_coverage(self, solution: Solution):
        """Stage 3: bring everybody to one, then to two activities"""
        persons = self._shuffled_persons(
            lambda p: len(solution.get_person_assignments(p.id)) == 0
        )
        for person in persons:
            self.assign_activity(solution, person)
        self._debug("STAGE 3 - PASS 1", solution)

        persons = self._shuffled_persons(
            lambda p: len(solution.get_person_assignments(p.id)) == 1
        )
        for person in persons:
            self.assign_activity(solution, person)
        self._debug("STAGE 3 - PASS 2", solution)

    def _stage_4_extra_passes(self, solution: Solution):
        """Stage 4: two unconditional passes over all persons"""
        for pass_number in (1, 2):
            for person in self._shuffled_persons():
                self.assign_activity(solution, person)
            self._debug(f"STAGE 4 - PASS {pass_number}", solution)

    # ------------------------------------------------------------------
    # Assignment procedures
    # ------------------------------------------------------------------

    def _assign_must_haves(self, solution: Solution, person: Person,
                           must_haves: List[Activity]):
        """
        Assign the best non-colliding pair of must-haves, or a single one

        Pairs are enumerated with the first id lower than the second; the
        first pair with the largest combined missing-persons-count wins.
        Without such a pair a Duty must-have is preferred, else a random one.
        """
        if len(must_haves) >= 2:
            pair = self._best_must_have_pair(solution, must_haves)
            if pair is not None:
                solution.add_assignment(person.id, pair[0].id)
                solution.add_assignment(person.id, pair[1].id)
                return

        if not must_haves:
            return

        duty = next((a for a in must_haves if a.module == Module.DUTY), None)
        if duty is not None:
            solution.add_assignment(person.id, duty.id)
        else:
            choice = must_haves[self.rng.integers(0, len(must_haves))]
            solution.add_assignment(person.id, choice.id)

    def _best_must_have_pair(self, solution: Solution,
                             must_haves: List[Activity]) -> Optional[Tuple[Activity, Activity]]:
        best_pair = None
        best_score = None

        for first in must_haves:
            for second in must_haves:
                if first.id >= second.id:
                    continue
                if collides([first], second):
                    continue
                score = (solution.missing_persons_count(first) +
                         solution.missing_persons_count(second))
                if best_score is None or score > best_score:
                    best_pair = (first, second)
                    best_score = score

        return best_pair

    def assign_activity(self, solution: Solution, person: Person) -> Activity:
        """
        Add one more activity for a person

        Must-have and preferred activities that fit are tried first; otherwise
        any catalogue activity the person did not rule out and that fits.

        Returns:
            The activity assigned

        Raises:
            NoEligibleActivityError: if the fallback candidate set is empty
        """
        held = solution.held_activities(self.input_data, person.id)

        wanted = [
            self.input_data.get_activity(p.activity_id)
            for p in person.preferences_of(Preference.MUST_HAVE, Preference.PREFERRED)
        ]
        wanted = [a for a in wanted if not collides(held, a)]

        activity = self._most_needed(solution, wanted)
        if activity is None:
            excluded = {p.activity_id for p in person.preferences_of(Preference.CANT_HAVE)}
            fallback = [
                a for a in self.input_data.activities()
                if a.id not in excluded and not collides(held, a)
            ]
            activity = self._most_needed(solution, fallback)

        if activity is None:
            raise NoEligibleActivityError(
                f"No eligible activity for person {person.id} ({person.name}) "
                f"holding {[a.id for a in held]}"
            )

        solution.add_assignment(person.id, activity.id)
        return activity

    def _most_needed(self, solution: Solution,
                     activities: Sequence[Activity]) -> Optional[Activity]:
        """Activity with the largest missing-persons-count, random among ties"""
        if not activities:
            return None

        counts = [solution.missing_persons_count(a) for a in activities]
        top = max(counts)
        tied = [a for a, c in zip(activities, counts) if c == top]
        if len(tied) == 1:
            return tied[0]
        return tied[self.rng.integers(0, len(tied))]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _must_have_activities(self, person: Person) -> List[Activity]:
        return [self.input_data.get_activity(p.activity_id) for p in person.must_haves()]

    def _shuffled_persons(self, predicate=None) -> List[Person]:
        persons = [p for p in self.input_data.persons() if predicate is None or predicate(p)]
        self.rng.shuffle(persons)
        return persons

    def _debug(self, stage: str, solution: Solution):
        if self.verbose:
            print(f"{stage}:")
            print(f"{solution.person_assignments}\n")


def solve(input_data: InputData,
          rng: Optional[np.random.Generator] = None,
          verbose: bool = False) -> Solution:
    """
    Run the assignment engine once

    Non-deterministic across calls unless an rng with a fixed seed is given.
    """
    engine = AssignmentEngine(input_data, rng=rng, verbose=verbose)
    return engine.solve()
