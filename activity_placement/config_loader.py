"""
Configuration Loading System

Loads YAML configuration files and converts them to the input snapshot and
search settings for the activity placement system.
"""

import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .data_models import (
    Activity, Block, InputData, Module, Person, PersonPreference, Preference
)


class ConfigurationError(Exception):
    """Raised when configuration is invalid"""
    pass


DEFAULT_TRIALS = 100


def _parse_id(value: Any) -> int:
    """Accept integer ids and digit strings; floats and bools are rejected"""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    raise ValueError(f"not an integer id: {value!r}")


def load_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    """Load configuration from YAML file"""
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigurationError("Configuration file is empty")
    return config


def save_config(config: Dict[str, Any], output_path: str) -> str:
    """Write a configuration dictionary as YAML, creating parent directories"""
    output_file = Path(output_path)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)

    return str(output_file)


def parse_activity(activity_data: Dict[str, Any]) -> Activity:
    """Convert one 'activities' entry into an Activity"""
    if not isinstance(activity_data, dict):
        raise ConfigurationError(f"Activity entry must be a mapping, got: {activity_data!r}")

    try:
        activity_id = _parse_id(activity_data["id"])
    except (KeyError, TypeError, ValueError):
        raise ConfigurationError(f"Activity entry without a valid id: {activity_data}")

    try:
        module = Module(str(activity_data.get("module", "")).lower())
    except ValueError:
        raise ConfigurationError(
            f"Unknown module for activity {activity_id}: {activity_data.get('module')}"
        )

    try:
        block = Block(str(activity_data.get("block", "")).upper())
    except ValueError:
        raise ConfigurationError(
            f"Unknown block for activity {activity_id}: {activity_data.get('block')}"
        )

    min_person_count = activity_data.get("min_person_count", 0)
    if (not isinstance(min_person_count, int) or isinstance(min_person_count, bool)
            or min_person_count < 0):
        raise ConfigurationError(
            f"Activity {activity_id} min_person_count must be a non-negative integer, "
            f"got: {min_person_count}"
        )

    return Activity(
        id=activity_id,
        name=str(activity_data.get("name", f"activity_{activity_id}")),
        module=module,
        block=block,
        min_person_count=min_person_count,
    )


def parse_person(person_data: Dict[str, Any]) -> Person:
    """Convert one 'persons' entry into a Person"""
    if not isinstance(person_data, dict):
        raise ConfigurationError(f"Person entry must be a mapping, got: {person_data!r}")

    try:
        person_id = _parse_id(person_data["id"])
    except (KeyError, TypeError, ValueError):
        raise ConfigurationError(f"Person entry without a valid id: {person_data}")

    pref_entries = person_data.get("preferences") or []
    if not isinstance(pref_entries, list):
        raise ConfigurationError(f"Preferences of person {person_id} must be a list")

    preferences = []
    for pref_data in pref_entries:
        if not isinstance(pref_data, dict):
            raise ConfigurationError(
                f"Preference of person {person_id} must be a mapping, got: {pref_data!r}"
            )
        try:
            kind = Preference(str(pref_data.get("kind", "")).lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown preference kind for person {person_id}: {pref_data.get('kind')}"
            )
        try:
            activity_id = _parse_id(pref_data["activity"])
        except (KeyError, TypeError, ValueError):
            raise ConfigurationError(
                f"Preference of person {person_id} has no valid 'activity': {pref_data}"
            )
        preferences.append(PersonPreference(activity_id, kind))

    return Person(
        id=person_id,
        name=str(person_data.get("name", f"person_{person_id}")),
        preferences=preferences,
    )


def create_input_from_config(config: Dict[str, Any]) -> InputData:
    """
    Build the input snapshot from a configuration dictionary

    Raises:
        ConfigurationError: on unknown values, duplicate ids or dangling references
    """
    issues = validate_config(config)
    if issues:
        raise ConfigurationError("Invalid configuration:\n  - " + "\n  - ".join(issues))

    activities = [parse_activity(a) for a in config["activities"]]
    persons = [parse_person(p) for p in config["persons"]]

    return InputData(activities, persons)


def load_input(config_path: str = "config.yaml") -> InputData:
    """Load and build the input snapshot from a YAML file"""
    return create_input_from_config(load_config(config_path))


def resolve_random_seed(random_seed: Any) -> int:
    """Turn the configured seed into an integer, drawing one for null/'random'"""
    if random_seed is None or random_seed == "random":
        random_seed = int(time.time() * 1000000) % 2147483647
        print(f"Using random seed: {random_seed}")
    elif isinstance(random_seed, str) and random_seed.isdigit():
        random_seed = int(random_seed)
    elif not isinstance(random_seed, int):
        raise ConfigurationError(f"Invalid random_seed: {random_seed}")
    return random_seed


def _mapping_entries(entries: Any) -> List[Dict[str, Any]]:
    if not isinstance(entries, list):
        return []
    return [e for e in entries if isinstance(e, dict)]


def _mapping_section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Section '{name}' must be a mapping")
    return section


def get_search_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Search settings with defaults applied"""
    search_config = _mapping_section(config, "search")
    trials = search_config.get("trials", DEFAULT_TRIALS)
    if not isinstance(trials, int) or isinstance(trials, bool) or trials <= 0:
        raise ConfigurationError(f"'search.trials' must be a positive integer, got: {trials}")

    return {
        'trials': trials,
        'random_seed': search_config.get("random_seed"),
    }


def get_output_config(config: Dict[str, Any]) -> Dict[str, Any]:
    output_config = _mapping_section(config, "output")
    return {'directory': output_config.get("directory", "output")}


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration and return list of issues

    Returns:
        List of validation error messages (empty if valid)
    """
    if not isinstance(config, dict):
        return ["Configuration must be a mapping of sections"]

    issues = []

    for section in ["activities", "persons"]:
        if section not in config:
            issues.append(f"Missing required section: {section}")
        elif not isinstance(config[section], list):
            issues.append(f"Section '{section}' must be a list")

    if issues:
        return issues

    activity_ids = set()
    for activity_data in config["activities"]:
        try:
            activity = parse_activity(activity_data)
        except ConfigurationError as e:
            issues.append(str(e))
            continue
        if activity.id in activity_ids:
            issues.append(f"Duplicate activity id: {activity.id}")
        activity_ids.add(activity.id)

    if not config["activities"]:
        issues.append("No activities defined")

    person_ids = set()
    for person_data in config["persons"]:
        try:
            person = parse_person(person_data)
        except ConfigurationError as e:
            issues.append(str(e))
            continue
        if person.id in person_ids:
            issues.append(f"Duplicate person id: {person.id}")
        person_ids.add(person.id)

        for pref in person.preferences:
            if pref.activity_id not in activity_ids:
                issues.append(
                    f"Person {person.id} references unknown activity {pref.activity_id}"
                )

    try:
        search_config = _mapping_section(config, "search")
        _mapping_section(config, "output")
    except ConfigurationError as e:
        issues.append(str(e))
        return issues

    trials = search_config.get("trials", DEFAULT_TRIALS)
    if not isinstance(trials, int) or isinstance(trials, bool) or trials <= 0:
        issues.append("'search.trials' must be a positive integer")

    return issues


def print_config_summary(config_path: str = "config.yaml", config: Optional[Dict[str, Any]] = None):
    """Print a summary of the configuration"""
    try:
        if config is None:
            config = load_config(config_path)

        if not isinstance(config, dict):
            raise ConfigurationError("Configuration must be a mapping of sections")

        print("=" * 50)
        print("CONFIGURATION SUMMARY")
        print("=" * 50)

        activities = _mapping_entries(config.get("activities"))
        persons = _mapping_entries(config.get("persons"))
        print(f"Activities: {len(activities)}")

        by_module = {}
        for activity_data in activities:
            module = str(activity_data.get("module", "?")).lower()
            by_module[module] = by_module.get(module, 0) + 1
        for module, count in sorted(by_module.items()):
            print(f"  {module}: {count}")

        print(f"\nPersons: {len(persons)}")
        pref_counts = {}
        for person_data in persons:
            for pref in _mapping_entries(person_data.get("preferences")):
                kind = str(pref.get("kind", "?")).lower()
                pref_counts[kind] = pref_counts.get(kind, 0) + 1
        for kind, count in sorted(pref_counts.items()):
            print(f"  {kind}: {count}")

        search_config = _mapping_section(config, "search")
        print(f"\nTrials: {search_config.get('trials', DEFAULT_TRIALS)}")
        print(f"Random seed: {search_config.get('random_seed', 'random')}")

        issues = validate_config(config)
        if issues:
            print(f"\nValidation Issues ({len(issues)}):")
            for issue in issues:
                print(f"  - {issue}")
        else:
            print("\nConfiguration is valid ✓")

        print("=" * 50)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}")
