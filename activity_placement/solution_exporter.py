"""
Solution Export System

Exports a solution to a flat CSV file, one row per (person, activity)
assignment, for spreadsheets and downstream processing.
"""

import csv
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .data_models import InputData, Solution


CSV_HEADER = ['person_id', 'person_name', 'activity_id', 'activity_name', 'module', 'block']


@dataclass
class AssignmentRow:
    """One exported assignment"""
    person_id: int
    person_name: str
    activity_id: int
    activity_name: str
    module: str
    block: str


@dataclass
class AssignmentTable:
    """Exported rows plus run metadata"""
    rows: List[AssignmentRow]
    metadata: Dict[str, Any]


class SolutionExporter:
    """Exports solutions to CSV format"""

    def create_assignment_table(self,
                                input_data: InputData,
                                solution: Solution,
                                score: Optional[float] = None) -> AssignmentTable:
        """
        Convert a solution into exportable rows

        Args:
            input_data: Input snapshot the solution was built for
            solution: Solution to export
            score: Optional fitness score stored in the metadata

        Returns:
            AssignmentTable ordered by person, then assignment order
        """
        rows = []
        for person in input_data.persons():
            for activity in solution.held_activities(input_data, person.id):
                rows.append(AssignmentRow(
                    person_id=person.id,
                    person_name=person.name,
                    activity_id=activity.id,
                    activity_name=activity.name,
                    module=activity.module.value,
                    block=activity.block.value,
                ))

        metadata = {
            'timestamp': datetime.now().isoformat(),
            'generator': 'activity_placement',
            'total_assignments': len(rows),
            'score': score,
        }

        return AssignmentTable(rows=rows, metadata=metadata)

    def export_csv(self, table: AssignmentTable, output_path: str) -> str:
        """Export assignment rows to CSV format"""
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(CSV_HEADER)
            for row in table.rows:
                writer.writerow([
                    row.person_id,
                    row.person_name,
                    row.activity_id,
                    row.activity_name,
                    row.module,
                    row.block,
                ])

        return str(output_file)


def create_solution_file(input_data: InputData,
                         solution: Solution,
                         output_name: Optional[str] = None,
                         output_dir: str = "output",
                         score: Optional[float] = None) -> str:
    """
    Convenience function to create a solution CSV file

    Returns:
        Path to generated CSV file
    """
    if output_name is None:
        timestamp = int(time.time())
        output_name = f"assignment_{timestamp}"

    exporter = SolutionExporter()
    table = exporter.create_assignment_table(input_data, solution, score)

    return exporter.export_csv(table, str(Path(output_dir) / f"{output_name}.csv"))
