"""
Solve orchestrator.
Builds the layout frame, runs a fixed number of placement variants, keeps
the best scoring one that passes the hard constraints, then places
openings, checks reachability and emits the plan text.
"""

import logging
from typing import Dict, List, Any, Optional, Union

from floorplan_solver.config.config_loader import load_solver_config
from floorplan_solver.core.constraints import ConstraintViolation, score_plan, validate_plan_hard
from floorplan_solver.core.corridor import generate_corridor, insert_corridor, validate_corridor
from floorplan_solver.core.frame import LayoutFrame, build_layout_frame
from floorplan_solver.core.gaps import fill_gaps_iterative
from floorplan_solver.core.openings import place_openings
from floorplan_solver.core.ordering import RoomOrderingResult, order_rooms
from floorplan_solver.core.placer import place_rooms
from floorplan_solver.core.reachability import (
    build_door_graph,
    door_graph_dict,
    find_entry_room,
    find_reachable_rooms,
    validate_reachability,
)
from floorplan_solver.core.repair import repair_placement
from floorplan_solver.core.trace import InspectTrace, NullTraceSink
from floorplan_solver.models.intent import (
    LayoutIntent,
    normalize_intent,
    validate_intent,
    validate_intent_warnings,
)
from floorplan_solver.models.plan_state import PlanState, RoomPlacementFailure
from floorplan_solver.utils.metrics import PlanMetrics
from floorplan_solver.visualization.export import export_to_planscript

logger = logging.getLogger(__name__)

# Variant skip reasons
SKIP_UNPLACED = "unplaced_rooms"
SKIP_HARD_VIOLATIONS = "hard_violations"


class SolveOptions:
    """Knobs for a solve run."""

    def __init__(
        self,
        variants: int = 3,
        repair: bool = True,
        generate_corridor: bool = True,
        fill_gaps: bool = True,
        inspect: bool = False,
        config_path: Optional[str] = None,
    ):
        """
        Initialize solve options.

        Args:
            variants: Number of placement variants to try
            repair: Run the adjacency repair pass
            generate_corridor: Synthesize a corridor when no circulation is declared
            fill_gaps: Grow rooms into leftover space
            inspect: Record an inspection trace
            config_path: Optional JSON file overriding solver configuration
        """
        if variants < 1:
            raise ValueError("variants must be at least 1")
        self.variants = variants
        self.repair = repair
        self.generate_corridor = generate_corridor
        self.fill_gaps = fill_gaps
        self.inspect = inspect
        self.config_path = config_path

    def __repr__(self) -> str:
        return (
            f"SolveOptions(variants={self.variants}, repair={self.repair}, "
            f"corridor={self.generate_corridor}, fill_gaps={self.fill_gaps})"
        )


class SolveSuccess:
    """Result of a successful solve."""

    success = True

    def __init__(
        self,
        plan_script: str,
        state: PlanState,
        score: Dict[str, Any],
        frame: LayoutFrame,
        warnings: Optional[List[str]] = None,
        trace: Optional[InspectTrace] = None,
    ):
        self.plan_script = plan_script
        self.state = state
        self.score = score
        self.frame = frame
        self.warnings = list(warnings or [])
        self.trace = trace

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "success": True,
            "planScript": self.plan_script,
            "state": self.state.to_dict(),
            "score": self.score,
            "frame": self.frame.to_dict(),
            "warnings": list(self.warnings),
        }
        if self.trace is not None:
            data["inspectTrace"] = self.trace.to_dict()
        return data

    def __repr__(self) -> str:
        return f"SolveSuccess(score={self.score['total']:.2f}, rooms={len(self.state.placed)})"


class SolveFailure:
    """Result of a failed solve."""

    success = False

    def __init__(
        self,
        error: str,
        violations: Optional[List[str]] = None,
        failures: Optional[List[RoomPlacementFailure]] = None,
        partial_state: Optional[PlanState] = None,
        trace: Optional[InspectTrace] = None,
    ):
        self.error = error
        self.violations = list(violations or [])
        self.failures = list(failures or [])
        self.partial_state = partial_state
        self.trace = trace

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "success": False,
            "error": self.error,
            "violations": list(self.violations),
            "failures": [f.to_dict() for f in self.failures],
        }
        if self.partial_state is not None:
            data["partialState"] = self.partial_state.to_dict()
        if self.trace is not None:
            data["inspectTrace"] = self.trace.to_dict()
        return data

    def __repr__(self) -> str:
        return f"SolveFailure({self.error})"


class VariantResult:
    """Outcome of one placement variant: a scored state or a skip reason."""

    def __init__(
        self,
        variant: int,
        state: PlanState,
        score: Optional[Dict[str, Any]] = None,
        skip_reason: Optional[str] = None,
        violations: Optional[List[ConstraintViolation]] = None,
        trace=None,
    ):
        self.variant = variant
        self.state = state
        self.score = score
        self.skip_reason = skip_reason
        self.violations = list(violations or [])
        self.trace = trace

    @property
    def ok(self) -> bool:
        return self.skip_reason is None

    @property
    def total(self) -> float:
        return self.score["total"] if self.score else float("-inf")

    def __repr__(self) -> str:
        if self.ok:
            return f"VariantResult({self.variant}, total={self.total:.2f})"
        return f"VariantResult({self.variant}, skipped={self.skip_reason})"


def run_variant(
    intent: LayoutIntent,
    frame: LayoutFrame,
    ordering: RoomOrderingResult,
    variant: int,
    options: SolveOptions,
    config: Dict[str, Any],
    trace=None,
) -> VariantResult:
    """
    Run one placement variant through placement, repair, gap filling,
    corridor synthesis and scoring.

    Args:
        intent: Normalized intent
        frame: Layout frame
        ordering: Room ordering shared by all variants
        variant: Variant index
        options: Solve options
        config: Merged solver configuration
        trace: Trace sink for this variant's placement records

    Returns:
        VariantResult: Scored state, or the reason the variant was dropped
    """
    settings = config["settings"]
    state = place_rooms(
        intent,
        frame,
        ordering,
        variant=variant,
        max_candidates=settings["max_candidates_per_room"],
        trace=trace,
    )

    if state.unplaced:
        logger.warning(
            f"Variant {variant}: {len(state.unplaced)} room(s) could not be placed"
        )
        return VariantResult(variant, state, skip_reason=SKIP_UNPLACED, trace=trace)

    violations = validate_plan_hard(state, intent, frame)
    if violations:
        logger.warning(f"Variant {variant}: {len(violations)} hard constraint violation(s)")
        return VariantResult(
            variant, state, skip_reason=SKIP_HARD_VIOLATIONS, violations=violations, trace=trace
        )

    if options.repair:
        repair_placement(state, intent, frame, max_passes=settings["repair_max_passes"])

    if options.fill_gaps:
        passes = fill_gaps_iterative(state, intent, frame, max_passes=settings["gap_fill_max_passes"])
        if passes:
            logger.debug(f"Variant {variant}: filled gaps in {passes} pass(es)")

    if options.generate_corridor and not intent.has_circulation():
        corridor = generate_corridor(state, intent, frame)
        if corridor is not None:
            if validate_corridor(corridor, state, intent, frame):
                insert_corridor(state, corridor)
            else:
                logger.warning(f"Variant {variant}: generated corridor rejected")

    score = score_plan(state, intent, frame, config["ideal_aspects"])
    state.score = score
    logger.debug(f"Variant {variant}: score = {score['total']:.2f}")
    return VariantResult(variant, state, score=score, trace=trace)


def _placement_failure(results: List[VariantResult], trace) -> SolveFailure:
    """Build the diagnostic failure when no variant survives."""
    last = results[-1]
    failures = list(last.state.failures.values())
    if failures:
        ids = ", ".join(f.room_id for f in failures)
        return SolveFailure(
            f"Could not place {len(failures)} room(s): {ids}",
            violations=[f.message for f in failures],
            failures=failures,
            trace=trace,
        )
    return SolveFailure(
        "Could not find a valid room placement",
        violations=[v.message for r in results for v in r.violations],
        trace=trace,
    )


def solve(
    intent: Union[LayoutIntent, Dict[str, Any]], options: Optional[SolveOptions] = None
) -> Union[SolveSuccess, SolveFailure]:
    """
    Solve a floor plan from an intent.

    Expected problems (invalid input, unplaceable rooms, constraint
    violations, unreachable rooms) come back as SolveFailure; unexpected
    errors are logged and returned as a generic SolveFailure.

    Args:
        intent: Layout intent, or its dictionary representation
        options: Solve options

    Returns:
        SolveSuccess or SolveFailure
    """
    options = options or SolveOptions()
    trace = InspectTrace() if options.inspect else NullTraceSink()
    result_trace = trace if trace.enabled else None

    try:
        if isinstance(intent, dict):
            intent = LayoutIntent.from_dict(intent)

        config = load_solver_config(options.config_path)
        normalized = normalize_intent(intent)
        weights = dict(config["weights"])
        weights.update(intent.weights or {})
        normalized.weights = weights

        errors = validate_intent(normalized)
        if errors:
            logger.warning(f"Invalid intent: {'; '.join(errors)}")
            return SolveFailure("Invalid intent", violations=errors, trace=result_trace)

        warnings = validate_intent_warnings(normalized)
        logger.info(
            f"Solving {len(normalized.rooms)} room(s) with {options.variants} variant(s)"
        )

        frame = build_layout_frame(normalized)
        trace.record_frame(frame)
        ordering = order_rooms(normalized.rooms)
        trace.record_ordering(ordering)

        results = []
        for variant in range(options.variants):
            variant_trace = InspectTrace() if trace.enabled else trace
            results.append(
                run_variant(normalized, frame, ordering, variant, options, config, variant_trace)
            )

        best = None
        for result in results:
            if result.ok and (best is None or result.total > best.total):
                best = result

        if best is None:
            if trace.enabled:
                trace.placements = results[-1].trace.placements
            failure = _placement_failure(results, result_trace)
            logger.warning(f"Solve failed: {failure.error}")
            return failure

        state = best.state
        if trace.enabled:
            trace.placements = best.trace.placements

        place_openings(
            state,
            normalized,
            frame,
            trace=trace,
            door_margin=config["settings"]["door_margin"],
            priorities=config["door_priorities"],
        )

        violations = validate_plan_hard(state, normalized, frame)
        if violations:
            return SolveFailure(
                "Plan has constraint violations after opening placement",
                violations=[v.message for v in violations],
                partial_state=state,
                trace=result_trace,
            )

        entry = find_entry_room(normalized, state, frame)
        reachability_error = validate_reachability(normalized, state, frame)
        if trace.enabled:
            reachable = find_reachable_rooms(entry.id, state) if entry is not None else []
            unreachable = [room_id for room_id in state.placed if room_id not in reachable]
            trace.record_reachability(
                entry.id if entry is not None else None,
                reachable,
                unreachable,
                door_graph_dict(build_door_graph(state)),
            )
            trace.record_final_layout(state)

        if reachability_error:
            if normalized.hard.all_rooms_reachable:
                logger.warning(f"Solve failed: {reachability_error}")
                return SolveFailure(
                    "Plan has unreachable rooms",
                    violations=[reachability_error],
                    partial_state=state,
                    trace=result_trace,
                )
            logger.warning(reachability_error)
            warnings.append(reachability_error)

        for warning in warnings:
            trace.add_warning(warning)

        plan_script = export_to_planscript(state, normalized, frame)
        logger.info(
            f"Solved with variant {best.variant} (score {best.total:.2f}, "
            f"{len(state.openings)} opening(s))"
        )
        metrics = PlanMetrics(state, normalized.room_map(), frame.footprint_rect, frame.footprint_area)
        logger.debug(f"Plan metrics: {metrics.summary()}")
        return SolveSuccess(plan_script, state, best.score, frame, warnings, result_trace)

    except Exception as e:
        logger.exception(f"Unexpected error while solving: {e}")
        return SolveFailure(str(e), trace=result_trace)
