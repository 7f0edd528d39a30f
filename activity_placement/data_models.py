"""
Data models for activity placement.

Immutable catalogue types (activities, people, preferences), the input
snapshot for one planning run, and the bidirectional assignment ledger.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Tuple


class UnknownActivityError(KeyError):
    """Raised when an activity id is not present in the input snapshot"""
    pass


class Module(Enum):
    """Mutually-exclusive activity categories"""
    DUTY = "duty"
    ACHIEVEMENT = "achievement"
    COMPETITION = "competition"
    SOCIAL = "social"


class Block(Enum):
    """Atomic time slots"""
    B1 = "B1"
    B2 = "B2"
    B3 = "B3"
    B4 = "B4"
    B5 = "B5"

    def snap(self) -> 'Block':
        """Coarse time group of this block (B1/B2 -> B1, B3/B4 -> B3, B5 -> B5)"""
        if self in (Block.B1, Block.B2):
            return Block.B1
        if self in (Block.B3, Block.B4):
            return Block.B3
        return Block.B5


class Preference(Enum):
    """Preference kinds a person can attach to an activity"""
    MUST_HAVE = "must_have"
    PREFERRED = "preferred"
    CANT_HAVE = "cant_have"


@dataclass(frozen=True)
class Activity:
    """Scheduled activity with its category, time slot and desired headcount"""
    id: int
    name: str
    module: Module
    block: Block
    min_person_count: int = 0

    def __post_init__(self):
        if self.min_person_count < 0:
            raise ValueError(f"Activity {self.id} min_person_count must be non-negative")


@dataclass(frozen=True)
class PersonPreference:
    activity_id: int
    preference: Preference


@dataclass(frozen=True)
class Person:
    """Participant with an ordered collection of preferences"""
    id: int
    name: str
    preferences: Tuple[PersonPreference, ...] = ()

    def __post_init__(self):
        # Accept any iterable, store as tuple
        object.__setattr__(self, 'preferences', tuple(self.preferences))

    def preferences_of(self, *kinds: Preference) -> List[PersonPreference]:
        """Preferences of the given kinds, in declaration order"""
        return [p for p in self.preferences if p.preference in kinds]

    def must_haves(self) -> List[PersonPreference]:
        return self.preferences_of(Preference.MUST_HAVE)


class InputData:
    """
    Immutable snapshot of one planning run.

    Owns the id -> Activity and id -> Person mappings. Lookups are total:
    asking for an unknown id is a referential-integrity violation and raises.
    """

    def __init__(self, activities: List[Activity], persons: List[Person]):
        self._activities: Dict[int, Activity] = {a.id: a for a in activities}
        self._persons: Dict[int, Person] = {p.id: p for p in persons}

    def activities(self) -> Iterator[Activity]:
        return iter(self._activities.values())

    def persons(self) -> Iterator[Person]:
        return iter(self._persons.values())

    def get_activity(self, activity_id: int) -> Activity:
        try:
            return self._activities[activity_id]
        except KeyError:
            raise UnknownActivityError(f"Unknown activity id: {activity_id}") from None

    def get_person(self, person_id: int) -> Person:
        return self._persons[person_id]

    @property
    def activity_count(self) -> int:
        return len(self._activities)

    @property
    def person_count(self) -> int:
        return len(self._persons)

    def __repr__(self) -> str:
        return f"InputData(activities={self.activity_count}, persons={self.person_count})"


@dataclass
class Solution:
    """
    Bidirectional assignment ledger.

    person_assignments and activity_assignments are kept in lockstep by
    add_assignment, the only mutating operation. There is no removal.
    """
    _person_assignments: Dict[int, List[int]] = field(default_factory=dict)
    _activity_assignments: Dict[int, List[int]] = field(default_factory=dict)

    def add_assignment(self, person_id: int, activity_id: int):
        """Record that person_id attends activity_id (both directions)"""
        self._person_assignments.setdefault(person_id, []).append(activity_id)
        self._activity_assignments.setdefault(activity_id, []).append(person_id)

    def get_person_assignments(self, person_id: int) -> Tuple[int, ...]:
        return tuple(self._person_assignments.get(person_id, ()))

    def get_activity_assignments(self, activity_id: int) -> Tuple[int, ...]:
        return tuple(self._activity_assignments.get(activity_id, ()))

    def headcount(self, activity_id: int) -> int:
        return len(self._activity_assignments.get(activity_id, ()))

    def missing_persons_count(self, activity: Activity) -> int:
        """
        Persons still needed to reach the activity's minimum.

        Negative once the activity is over-filled.
        """
        return activity.min_person_count - self.headcount(activity.id)

    def assignment_pairs(self) -> Iterator[Tuple[int, int]]:
        """Yield (person_id, activity_id) pairs in assignment order per person"""
        for person_id, activity_ids in self._person_assignments.items():
            for activity_id in activity_ids:
                yield person_id, activity_id

    @property
    def person_assignments(self) -> Dict[int, Tuple[int, ...]]:
        return {pid: tuple(aids) for pid, aids in self._person_assignments.items()}

    @property
    def activity_assignments(self) -> Dict[int, Tuple[int, ...]]:
        return {aid: tuple(pids) for aid, pids in self._activity_assignments.items()}

    def total_assignments(self) -> int:
        return sum(len(aids) for aids in self._person_assignments.values())

    def held_activities(self, input_data: InputData, person_id: int) -> List[Activity]:
        """Resolve a person's assigned ids to Activity objects"""
        return [input_data.get_activity(aid) for aid in self.get_person_assignments(person_id)]

    def __repr__(self) -> str:
        return f"Solution(person_assignments={self._person_assignments!r})"
