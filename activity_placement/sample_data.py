"""
Random sample catalogue.

Twelve activities spread over the four modules and five blocks, and twenty
persons holding between zero and four must-haves, each from a different
module. Used for demos and smoke tests when no configuration file is given.
"""

from typing import Any, Dict, Optional

import numpy as np

from .data_models import (
    Activity, Block, InputData, Module, Person, PersonPreference, Preference
)


SAMPLE_ACTIVITIES = [
    ("Crocheting", Module.ACHIEVEMENT, Block.B1),
    ("Collaborating with the District", Module.ACHIEVEMENT, Block.B3),
    ("Taking in the View", Module.ACHIEVEMENT, Block.B5),

    ("Map Reading Walk", Module.SOCIAL, Block.B2),
    ("Influencing People", Module.SOCIAL, Block.B4),
    ("Saying Wise Things", Module.SOCIAL, Block.B4),

    ("Slingshot Range", Module.DUTY, Block.B1),
    ("Opening Tins", Module.DUTY, Block.B3),

    ("Kite Flying", Module.COMPETITION, Block.B1),
    ("Rating the Rating Methods", Module.COMPETITION, Block.B2),
    ("Colouring Books", Module.COMPETITION, Block.B3),
    ("Pointless Grumbling", Module.COMPETITION, Block.B5),
]

SAMPLE_NAMES = [
    "Plato Stephens", "Armand Mercer", "Kaye Glover", "Hall Humphrey",
    "Charissa Schwartz", "Oliver Crane", "Brynne Barrett", "Fuller Shelton",
    "Bryar Perry", "Britanni Howell", "Jelani Bryan", "Giselle Haley",
    "Grady Palmer", "Jermaine Klein", "Aline Holder", "Ralph Pruitt",
    "Wade Mayo", "Chester Cooke", "Benedict Kent", "Dante Kennedy",
]

MAX_MIN_PERSON_COUNT = 5
MAX_MUST_HAVES = 4


def generate_sample_input(random_seed: Optional[int] = None) -> InputData:
    """
    Generate the sample catalogue with random minimum headcounts and must-haves

    Minimum headcounts are drawn from 1..5. Each person draws a must-have
    count from 0..4 and picks one random activity from that many distinct,
    randomly ordered modules.
    """
    rng = np.random.default_rng(random_seed)

    activities = []
    for activity_id, (name, module, block) in enumerate(SAMPLE_ACTIVITIES):
        activities.append(Activity(
            id=activity_id,
            name=name,
            module=module,
            block=block,
            min_person_count=int(rng.integers(1, MAX_MIN_PERSON_COUNT + 1)),
        ))

    modules = list(Module)
    persons = []
    for person_id, name in enumerate(SAMPLE_NAMES):
        must_have_count = int(rng.integers(0, MAX_MUST_HAVES + 1))
        order = rng.permutation(len(modules))

        preferences = []
        for module_index in order[:must_have_count]:
            module = modules[module_index]
            choices = [a for a in activities if a.module == module]
            activity = choices[rng.integers(0, len(choices))]
            preferences.append(PersonPreference(activity.id, Preference.MUST_HAVE))

        persons.append(Person(id=person_id, name=name, preferences=preferences))

    return InputData(activities, persons)


def input_to_config(input_data: InputData) -> Dict[str, Any]:
    """Convert an input snapshot back to the YAML configuration layout"""
    return {
        'activities': [
            {
                'id': a.id,
                'name': a.name,
                'module': a.module.value,
                'block': a.block.value,
                'min_person_count': a.min_person_count,
            }
            for a in input_data.activities()
        ],
        'persons': [
            {
                'id': p.id,
                'name': p.name,
                'preferences': [
                    {'activity': pref.activity_id, 'kind': pref.preference.value}
                    for pref in p.preferences
                ],
            }
            for p in input_data.persons()
        ],
    }
