"""Smoke tests for the matplotlib renderers (Agg backend)."""

import matplotlib.pyplot as plt
import pytest

from floorplan_solver.core.openings import place_openings
from floorplan_solver.core.trace import InspectTrace
from floorplan_solver.visualization.renderer import PlanRenderer, StyleConfig, render_door_graph


@pytest.fixture
def opened_state(suite_state, suite_intent, suite_frame):
    place_openings(suite_state, suite_intent, suite_frame)
    return suite_state


class TestPlanRenderer:
    def test_render_plan_draws_rooms_and_cells(self, opened_state, suite_frame):
        fig, ax = PlanRenderer(opened_state, suite_frame).render_plan()
        # footprint + one cell + five rooms
        assert len(ax.patches) == 7
        assert len(ax.texts) == 5
        assert len(ax.lines) == len(opened_state.openings)
        plt.close(fig)

    def test_render_without_labels_or_cells(self, opened_state, suite_frame):
        fig, ax = PlanRenderer(opened_state, suite_frame).render_plan(
            show_labels=False, show_cells=False, highlight_rooms=["master"]
        )
        assert len(ax.patches) == 6
        assert len(ax.texts) == 0
        plt.close(fig)

    def test_save_render(self, opened_state, suite_frame, tmp_path):
        filename = tmp_path / "renders" / "plan.png"
        PlanRenderer(opened_state, suite_frame).save_render(str(filename), dpi=50)
        assert filename.exists()

    def test_brighten_color(self):
        assert StyleConfig.brighten_color("#000000") == "#000000"
        assert StyleConfig.brighten_color("#808080") == "#c0c0c0"


class TestDoorGraphRender:
    def test_from_state(self, opened_state):
        fig, ax = render_door_graph(opened_state, entry_room="hall")
        assert ax.get_title() == "Door Graph"
        plt.close(fig)

    def test_from_trace(self):
        trace = InspectTrace()
        trace.record_reachability("hall", ["hall", "bed"], [], {"hall": ["bed"], "bed": ["hall"]})
        fig, ax = render_door_graph(trace)
        assert len(ax.texts) == 2
        plt.close(fig)
