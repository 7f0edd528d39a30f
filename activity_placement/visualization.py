"""
Visualization for Activity Placement

Plots the search history and the staffing of the best solution: trial
scores, headcount against minimum per activity, and person score
distribution.
"""

from typing import Any, Dict, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .data_models import InputData, Module, Solution
from .search import SearchResult


MODULE_COLORS = {
    Module.DUTY: "red",
    Module.ACHIEVEMENT: "orange",
    Module.COMPETITION: "blue",
    Module.SOCIAL: "green",
}


class SolutionVisualizer:
    """Multi-panel plots of a search run"""

    def __init__(self, input_data: InputData):
        self.input_data = input_data

    def plot_search_summary(self,
                            search_result: SearchResult,
                            metrics: Dict[str, Any],
                            figsize: Tuple[int, int] = (16, 10),
                            save_path: Optional[str] = None,
                            show: bool = False):
        """
        Create a three-panel figure for a search run

        Args:
            search_result: Result of run_search
            metrics: SolutionMetrics analysis of the best solution
            figsize: Figure size (width, height)
            save_path: Optional path to save the figure
            show: Open an interactive window
        """
        fig = plt.figure(figsize=figsize)
        gs = fig.add_gridspec(2, 2, height_ratios=[1, 1])

        ax_scores = fig.add_subplot(gs[0, :])
        self.plot_trial_scores(search_result, ax_scores)

        ax_staffing = fig.add_subplot(gs[1, 0])
        self.plot_staffing(search_result.best_solution, ax_staffing)

        ax_persons = fig.add_subplot(gs[1, 1])
        self.plot_person_scores(metrics, ax_persons)

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')

        if show:
            plt.show()
        plt.close(fig)
        return fig

    def plot_trial_scores(self, search_result: SearchResult, ax: plt.Axes = None):
        """Score of every trial, best one highlighted"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(12, 4))

        scores = search_result.scores
        trials = np.arange(1, len(scores) + 1)

        ax.plot(trials, scores, marker='o', markersize=3, linewidth=1, alpha=0.7)
        ax.plot(trials, np.maximum.accumulate(scores), color="black", linestyle='--',
                linewidth=1, label="Best so far")
        ax.scatter([search_result.best_trial + 1], [search_result.best_score],
                   c="red", s=80, zorder=3, label=f"Best ({search_result.best_score:.3f})")

        ax.set_xlabel('Trial')
        ax.set_ylabel('Score')
        ax.set_title('Score per Trial')
        ax.legend()
        ax.grid(True, alpha=0.3)

    def plot_staffing(self, solution: Solution, ax: plt.Axes = None):
        """Headcount per activity against its minimum"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(8, 6))

        activities = list(self.input_data.activities())
        if not activities:
            ax.text(0.5, 0.5, "No activities", ha='center', va='center', transform=ax.transAxes)
            return

        x = np.arange(len(activities))
        headcounts = [solution.headcount(a.id) for a in activities]
        minimums = [a.min_person_count for a in activities]
        colors = [MODULE_COLORS.get(a.module, "gray") for a in activities]

        ax.bar(x, headcounts, color=colors, alpha=0.7, edgecolor="black")
        ax.scatter(x, minimums, marker='_', s=400, c="black", linewidths=2, label="Minimum")

        ax.set_xticks(x)
        ax.set_xticklabels([f"{a.name}\n{a.block.value}" for a in activities],
                           rotation=45, ha='right', fontsize=7)
        ax.set_ylabel('Persons')
        ax.set_title('Headcount per Activity')
        ax.legend()

    def plot_person_scores(self, metrics: Dict[str, Any], ax: plt.Axes = None):
        """Distribution of per-person preference scores"""
        if ax is None:
            fig, ax = plt.subplots(figsize=(6, 6))

        scores = list(metrics.get('person_scores', {}).values())
        if not scores:
            ax.text(0.5, 0.5, "No persons", ha='center', va='center', transform=ax.transAxes)
            return

        bins = np.arange(0, max(scores) + 2) - 0.5
        ax.hist(scores, bins=bins, alpha=0.7, edgecolor="black")
        ax.axvline(metrics['person_mean'], color="red", linestyle='--',
                   label=f"Mean {metrics['person_mean']:.2f}")

        ax.set_xlabel('Preference score')
        ax.set_ylabel('Persons')
        ax.set_title('Person Scores')
        ax.legend()
