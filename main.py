"""
EvoBrain – Main Entry Point
===========================

Usage examples:
  python main.py                              # default grazing-cow evolution
  python main.py --gens 20 --pop 40           # custom parameters
  python main.py --iterations 500 --cows 3    # shorter runs, more cows
  python main.py --target 50 --percentile 25  # easier stopping criterion
  python main.py --seed 7                     # reproducible run
"""

import argparse
import os

from cow_grazing import make_evaluator, format_peek
from visualizer import (ensure_dirs, save_world_snapshot, save_fitness_chart,
                        save_network_diagram, append_csv)
from workspace import Workspace
from config import (SAVE_DIR, SNAPSHOT_ITERATIONS, MAX_GENERATIONS,
                    ITERATIONS_PER_RUN, POPULATION_SIZE, ELIMINATION_RATIO,
                    NUM_COWS, STOP_PERCENTILE, STOP_FITNESS)


# ──────────────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────────────

def parse_args(argv=None):
    p = argparse.ArgumentParser(description="EvoBrain – evolve grazing cows")
    p.add_argument("--gens",        type=int,   default=MAX_GENERATIONS,
                   help="Maximum number of generations")
    p.add_argument("--iterations",  type=int,   default=ITERATIONS_PER_RUN,
                   help="Workspace iterations each sim is evaluated for")
    p.add_argument("--pop",         type=int,   default=POPULATION_SIZE,
                   help="Population size")
    p.add_argument("--elimination", type=float, default=ELIMINATION_RATIO,
                   help="Fraction of worst sims replaced each generation")
    p.add_argument("--cows",        type=int,   default=NUM_COWS,
                   help="Cows per sim")
    p.add_argument("--percentile",  type=float, default=STOP_PERCENTILE,
                   help="Percentile checked by the stopping criterion")
    p.add_argument("--target",      type=float, default=STOP_FITNESS,
                   help="Stop once the percentile fitness exceeds this")
    p.add_argument("--seed",        type=int,   default=None,
                   help="Random seed for reproducibility")
    p.add_argument("--outdir",      default=SAVE_DIR,
                   help="Output directory")
    p.add_argument("--replay",      type=int,   default=SNAPSHOT_ITERATIONS,
                   help="Iterations to replay the best sim before the snapshot")
    args = p.parse_args(argv)
    if args.pop < 1:
        p.error("--pop must be at least 1")
    if not 0 <= args.elimination < 1:
        p.error("--elimination must be within [0, 1)")
    if args.cows < 1:
        p.error("--cows must be at least 1")
    if not 0 <= args.percentile <= 100:
        p.error("--percentile must be within [0, 100]")
    return args


# ──────────────────────────────────────────────────────────────────────────────
# Callbacks
# ──────────────────────────────────────────────────────────────────────────────

class PeekCallbacks:
    """Per-generation progress line and CSV log."""

    def __init__(self, outdir: str):
        self.outdir = outdir

    def on_generation(self, evaluator):
        print(f"[{evaluator.generation}] {format_peek(evaluator)}")
        append_csv(evaluator.history[-1], self.outdir)


# ──────────────────────────────────────────────────────────────────────────────
# Main
# ──────────────────────────────────────────────────────────────────────────────

def replay_best(best, outdir: str, iterations: int):
    """Copy the best sim into a fresh workspace, run it, save pictures."""
    sim = best.visualize(Workspace())
    sim.build()
    sim.layout_phenotypes()
    sim.workspace.iterate(iterations)

    paths = [save_world_snapshot(sim.odor_world, "best_sim", outdir)]
    for i, cow in enumerate(sim.cow_phenotypes):
        paths.append(save_network_diagram(cow, f"best_cow_{i + 1}", outdir))
    fitness = min(sim.cow_fitnesses.values(), default=0.0)
    return paths, fitness


def main(argv=None):
    args = parse_args(argv)
    outdir = args.outdir
    ensure_dirs(outdir)

    print("=" * 60)
    print("  EvoBrain – Grazing Cow Neuroevolution")
    print("=" * 60)
    print(f"  Population : {args.pop}")
    print(f"  Generations: {args.gens}")
    print(f"  Iterations : {args.iterations}")
    print(f"  Elimination: {args.elimination}")
    print(f"  Cows/sim   : {args.cows}")
    print(f"  Stop when  : {args.percentile:g}th percentile > {args.target:g}")
    print(f"  Output dir : {outdir}")
    print("=" * 60)

    cb = PeekCallbacks(outdir)
    evaluator = make_evaluator(
        max_generations    = args.gens,
        iterations_per_run = args.iterations,
        population_size    = args.pop,
        elimination_ratio  = args.elimination,
        num_cows           = args.cows,
        stop_percentile    = args.percentile,
        stop_fitness       = args.target,
        seed               = args.seed,
        peek               = cb.on_generation,
    )
    sims = evaluator.run()

    print("\nSaving fitness chart …")
    chart_path = save_fitness_chart(evaluator.history, outdir,
                                    highlight=int(args.percentile))
    print(f"  → {chart_path}")

    print(f"Replaying best sim for {args.replay} iterations …")
    paths, fitness = replay_best(sims[0], outdir, args.replay)
    for path in paths:
        print(f"  → {path}")
    print(f"  Replay fitness: {fitness:.3f}")

    print("\nDone! All outputs saved to:", os.path.abspath(outdir))
    return evaluator


if __name__ == "__main__":
    main()
