"""
Tests for the four-stage assignment engine
"""

import unittest
import sys
from pathlib import Path

import numpy as np

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from activity_placement.assignment_engine import (
    AssignmentEngine, NoEligibleActivityError, solve
)
from activity_placement.collision import find_collisions
from activity_placement.data_models import (
    Activity, Block, InputData, Module, Person, PersonPreference, Preference,
    Solution, UnknownActivityError
)
from activity_placement.fitness import evaluate
from activity_placement.sample_data import generate_sample_input


MH = Preference.MUST_HAVE
PREF = Preference.PREFERRED
CANT = Preference.CANT_HAVE


def make_person(person_id, *preferences):
    return Person(person_id, f"person_{person_id}",
                  [PersonPreference(aid, kind) for aid, kind in preferences])


def run_until_stage_3(engine):
    solution = Solution()
    engine._stage_1_few_must_haves(solution)
    engine._stage_2_many_must_haves(solution)
    engine._stage_3_coverage(solution)
    return solution


class TestStageOne(unittest.TestCase):
    """Stage 1: persons with at most two must-haves"""

    def test_single_must_have_assigned(self):
        """Test that a lone must-have is assigned"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 1),
            Activity(1, "Kite Flying", Module.COMPETITION, Block.B5, 1),
        ]
        input_data = InputData(activities, [make_person(1, (1, MH))])
        engine = AssignmentEngine(input_data, random_seed=0)

        solution = Solution()
        engine._stage_1_few_must_haves(solution)

        self.assertEqual(solution.get_person_assignments(1), (1,))

    def test_two_compatible_must_haves_both_assigned(self):
        """Test that two non-colliding must-haves are both assigned"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 1),
            Activity(1, "Kite Flying", Module.COMPETITION, Block.B5, 1),
        ]
        input_data = InputData(activities, [make_person(1, (1, MH), (0, MH))])
        engine = AssignmentEngine(input_data, random_seed=0)

        solution = Solution()
        engine._stage_1_few_must_haves(solution)

        self.assertEqual(solution.get_person_assignments(1), (0, 1))

    def test_colliding_must_haves_pick_one(self):
        """Test that two must-haves in one block yield exactly one of them"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B2, 1),
            Activity(1, "Map Reading Walk", Module.SOCIAL, Block.B2, 1),
        ]
        input_data = InputData(activities, [make_person(1, (0, MH), (1, MH))])

        seen = set()
        for seed in range(20):
            engine = AssignmentEngine(input_data, random_seed=seed)
            solution = Solution()
            engine._stage_1_few_must_haves(solution)

            assigned = solution.get_person_assignments(1)
            self.assertEqual(len(assigned), 1)
            self.assertIn(assigned[0], (0, 1))
            seen.add(assigned[0])

        # Random choice reaches both options across seeds
        self.assertEqual(seen, {0, 1})

    def test_colliding_must_haves_prefer_duty(self):
        """Test that the Duty must-have wins a collision"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 1),
            Activity(1, "Slingshot Range", Module.DUTY, Block.B1, 1),
        ]
        input_data = InputData(activities, [make_person(1, (0, MH), (1, MH))])

        for seed in range(10):
            engine = AssignmentEngine(input_data, random_seed=seed)
            solution = Solution()
            engine._stage_1_few_must_haves(solution)
            self.assertEqual(solution.get_person_assignments(1), (1,))

    def test_skips_persons_with_many_must_haves(self):
        """Test that stage 1 leaves persons with three must-haves alone"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 1),
            Activity(1, "Map Reading Walk", Module.SOCIAL, Block.B2, 1),
            Activity(2, "Kite Flying", Module.COMPETITION, Block.B5, 1),
        ]
        input_data = InputData(activities, [
            make_person(1, (0, MH), (1, MH), (2, MH)),
            make_person(2),
        ])
        engine = AssignmentEngine(input_data, random_seed=0)

        solution = Solution()
        engine._stage_1_few_must_haves(solution)

        self.assertEqual(solution.total_assignments(), 0)


class TestStageTwo(unittest.TestCase):
    """Stage 2: persons with more than two must-haves"""

    def test_best_pair_by_missing_count(self):
        """Test that the pair with the largest combined shortfall is chosen"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 5),
            Activity(1, "Map Reading Walk", Module.SOCIAL, Block.B2, 1),
            Activity(2, "Pointless Grumbling", Module.COMPETITION, Block.B5, 3),
        ]
        input_data = InputData(activities, [make_person(1, (0, MH), (1, MH), (2, MH))])
        engine = AssignmentEngine(input_data, random_seed=0)

        solution = Solution()
        engine._stage_2_many_must_haves(solution)

        self.assertEqual(solution.get_person_assignments(1), (0, 2))

    def test_colliding_pairs_skipped(self):
        """Test that colliding pairs are never chosen even with higher need"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 9),
            Activity(1, "Influencing People", Module.SOCIAL, Block.B4, 8),
            Activity(2, "Pointless Grumbling", Module.COMPETITION, Block.B5, 0),
        ]
        input_data = InputData(activities, [make_person(1, (0, MH), (1, MH), (2, MH))])
        engine = AssignmentEngine(input_data, random_seed=0)

        solution = Solution()
        engine._stage_2_many_must_haves(solution)

        # (0, 1) collides on opposing time groups
        self.assertEqual(solution.get_person_assignments(1), (0, 2))

    def test_shortfall_tracks_earlier_assignments(self):
        """Test that pair choice reflects headcount added by earlier stages"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 2),
            Activity(1, "Map Reading Walk", Module.SOCIAL, Block.B2, 2),
            Activity(2, "Pointless Grumbling", Module.COMPETITION, Block.B5, 2),
        ]
        input_data = InputData(activities, [
            make_person(1, (1, MH)),
            make_person(2, (1, MH)),
            make_person(3, (0, MH), (1, MH), (2, MH)),
        ])
        engine = AssignmentEngine(input_data, random_seed=0)

        solution = Solution()
        engine._stage_1_few_must_haves(solution)
        engine._stage_2_many_must_haves(solution)

        self.assertEqual(solution.get_person_assignments(3), (0, 2))

    def test_no_compatible_pair_falls_back_to_duty(self):
        """Test the Duty fallback when every pair collides"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 1),
            Activity(1, "Slingshot Range", Module.DUTY, Block.B1, 1),
            Activity(2, "Kite Flying", Module.COMPETITION, Block.B1, 1),
        ]
        input_data = InputData(activities, [make_person(1, (0, MH), (1, MH), (2, MH))])

        for seed in range(10):
            engine = AssignmentEngine(input_data, random_seed=seed)
            solution = Solution()
            engine._stage_2_many_must_haves(solution)
            self.assertEqual(solution.get_person_assignments(1), (1,))

    def test_no_compatible_pair_random_single(self):
        """Test the random single fallback without a Duty"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B3, 1),
            Activity(1, "Influencing People", Module.SOCIAL, Block.B3, 1),
            Activity(2, "Colouring Books", Module.COMPETITION, Block.B3, 1),
        ]
        input_data = InputData(activities, [make_person(1, (0, MH), (1, MH), (2, MH))])

        for seed in range(10):
            engine = AssignmentEngine(input_data, random_seed=seed)
            solution = Solution()
            engine._stage_2_many_must_haves(solution)

            assigned = solution.get_person_assignments(1)
            self.assertEqual(len(assigned), 1)
            self.assertIn(assigned[0], (0, 1, 2))


class TestSingleActivityProcedure(unittest.TestCase):
    """Test assign_activity used by stages 3 and 4"""

    def test_preferred_before_catalogue(self):
        """Test that a wanted activity beats a needier catalogue activity"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 0),
            Activity(1, "Slingshot Range", Module.DUTY, Block.B5, 10),
        ]
        person = make_person(1, (0, PREF))
        engine = AssignmentEngine(InputData(activities, [person]), random_seed=0)

        solution = Solution()
        chosen = engine.assign_activity(solution, person)

        self.assertEqual(chosen.id, 0)
        self.assertEqual(solution.get_person_assignments(1), (0,))

    def test_most_needed_wanted_activity(self):
        """Test that the neediest wanted activity is chosen"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 1),
            Activity(1, "Map Reading Walk", Module.SOCIAL, Block.B2, 4),
            Activity(2, "Pointless Grumbling", Module.COMPETITION, Block.B5, 2),
        ]
        person = make_person(1, (0, MH), (1, PREF), (2, PREF))
        engine = AssignmentEngine(InputData(activities, [person]), random_seed=0)

        solution = Solution()
        self.assertEqual(engine.assign_activity(solution, person).id, 1)

    def test_fallback_skips_cant_have_and_collisions(self):
        """Test the catalogue fallback honours exclusions and collisions"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 1),
            Activity(1, "Opening Tins", Module.DUTY, Block.B3, 10),
            Activity(2, "Influencing People", Module.SOCIAL, Block.B4, 8),
            Activity(3, "Pointless Grumbling", Module.COMPETITION, Block.B5, 2),
        ]
        person = make_person(1, (1, CANT))
        engine = AssignmentEngine(InputData(activities, [person]), random_seed=0)

        solution = Solution()
        solution.add_assignment(1, 0)

        # 1 is excluded, 2 collides with the held B1 activity
        self.assertEqual(engine.assign_activity(solution, person).id, 3)

    def test_empty_fallback_is_fatal(self):
        """Test that no eligible activity aborts with an error"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 1),
            Activity(1, "Kite Flying", Module.COMPETITION, Block.B1, 1),
        ]
        person = make_person(1, (1, CANT))
        engine = AssignmentEngine(InputData(activities, [person]), random_seed=0)

        solution = Solution()
        solution.add_assignment(1, 0)

        with self.assertRaises(NoEligibleActivityError):
            engine.assign_activity(solution, person)
        self.assertEqual(solution.get_person_assignments(1), (0,))

    def test_random_tie_break(self):
        """Test that equally needed activities are picked at random"""
        activities = [
            Activity(0, "Crocheting", Module.ACHIEVEMENT, Block.B1, 2),
            Activity(1, "Map Reading Walk", Module.SOCIAL, Block.B2, 2),
        ]
        person = make_person(1)
        input_data = InputData(activities, [person])

        seen = set()
        for seed in range(20):
            engine = AssignmentEngine(input_data, random_seed=seed)
            seen.add(engine.assign_activity(Solution(), person).id)

        self.assertEqual(seen, {0, 1})


class TestScenarios(unittest.TestCase):
    """End-to-end scenarios"""

    def setUp(self):
        self.activities = [
            Activity(0, "Slingshot Range", Module.DUTY, Block.B1, 1),
            Activity(1, "Collaborating with the District", Module.ACHIEVEMENT, Block.B3, 1),
        ]
        self.input_data = InputData(self.activities, [make_person(1, (0, MH), (1, PREF))])

    def test_duty_then_preferred(self):
        """Test stage 1 assigns the Duty and stage 3 adds the preferred one"""
        engine = AssignmentEngine(self.input_data, random_seed=0)

        solution = Solution()
        engine._stage_1_few_must_haves(solution)
        self.assertEqual(solution.get_person_assignments(1), (0,))

        engine._stage_2_many_must_haves(solution)
        engine._stage_3_coverage(solution)
        self.assertEqual(solution.get_person_assignments(1), (0, 1))

        # Person score 3 for everyone, stddev 0, both activities staffed
        self.assertAlmostEqual(evaluate(self.input_data, solution), 60.0)

    def test_stage_four_needs_spare_activities(self):
        """Test that the unconditional extra passes fail on an exhausted catalogue"""
        with self.assertRaises(NoEligibleActivityError):
            AssignmentEngine(self.input_data, random_seed=0).solve()

    def test_unknown_activity_reference_is_fatal(self):
        """Test that a dangling must-have reference aborts the run"""
        input_data = InputData(self.activities, [make_person(1, (42, MH))])
        with self.assertRaises(UnknownActivityError):
            AssignmentEngine(input_data, random_seed=0).solve()


class TestFullSolve(unittest.TestCase):
    """Properties of complete runs on the sample catalogue"""

    def setUp(self):
        self.input_data = generate_sample_input(random_seed=7)

    def test_coverage_after_stage_three(self):
        """Test that everybody holds exactly two activities after stage 3"""
        for seed in range(5):
            engine = AssignmentEngine(self.input_data, random_seed=seed)
            solution = run_until_stage_3(engine)
            for person in self.input_data.persons():
                self.assertEqual(len(solution.get_person_assignments(person.id)), 2)

    def test_stage_four_adds_two(self):
        """Test that each extra pass adds one activity per person"""
        solution = AssignmentEngine(self.input_data, random_seed=3).solve()
        for person in self.input_data.persons():
            self.assertEqual(len(solution.get_person_assignments(person.id)), 4)

    def test_ledger_symmetry(self):
        """Test both directions of the ledger agree"""
        for seed in range(5):
            solution = AssignmentEngine(self.input_data, random_seed=seed).solve()
            for person in self.input_data.persons():
                for activity in self.input_data.activities():
                    self.assertEqual(
                        solution.get_person_assignments(person.id).count(activity.id),
                        solution.get_activity_assignments(activity.id).count(person.id)
                    )

    def test_collision_soundness(self):
        """Test that no assignment collides with those made before it"""
        for seed in range(5):
            solution = AssignmentEngine(self.input_data, random_seed=seed).solve()
            for person in self.input_data.persons():
                held = solution.held_activities(self.input_data, person.id)
                self.assertEqual(find_collisions(held), [])

    def test_reproducible_results(self):
        """Test that the same seed produces the same solution"""
        solution1 = AssignmentEngine(self.input_data, random_seed=11).solve()
        solution2 = AssignmentEngine(self.input_data, random_seed=11).solve()
        self.assertEqual(solution1.person_assignments, solution2.person_assignments)

    def test_fresh_solution_per_run(self):
        """Test that repeated solves never share a ledger"""
        engine = AssignmentEngine(self.input_data, random_seed=5)
        solution1 = engine.solve()
        solution2 = engine.solve()
        self.assertIsNot(solution1, solution2)
        self.assertEqual(solution2.total_assignments(), 4 * self.input_data.person_count)

    def test_solve_function_with_injected_rng(self):
        """Test the module-level solve with an explicit generator"""
        solution1 = solve(self.input_data, rng=np.random.default_rng(99))
        solution2 = solve(self.input_data, rng=np.random.default_rng(99))
        self.assertEqual(solution1.person_assignments, solution2.person_assignments)

    def test_verbose_prints_stages(self):
        """Test that verbose mode prints the ledger for each stage"""
        import io
        from contextlib import redirect_stdout

        buffer = io.StringIO()
        with redirect_stdout(buffer):
            AssignmentEngine(self.input_data, random_seed=1, verbose=True).solve()

        output = buffer.getvalue()
        for stage in ("STAGE 1", "STAGE 2", "STAGE 3 - PASS 2", "STAGE 4 - PASS 2"):
            self.assertIn(stage, output)


if __name__ == '__main__':
    unittest.main()
