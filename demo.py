"""
Quick demo – a small fixed-seed grazing-cow evolution that saves a
fitness chart, a world snapshot and network diagrams without needing
a display.
"""

from cow_grazing import make_evaluator, print_peek
from main import replay_best
from visualizer import ensure_dirs, save_fitness_chart, append_csv

OUT = "output/demo"
ensure_dirs(OUT)


def on_gen(evaluator):
    print_peek(evaluator)
    append_csv(evaluator.history[-1], OUT)


evaluator = make_evaluator(
    max_generations    = 10,
    iterations_per_run = 300,
    population_size    = 20,
    elimination_ratio  = 0.5,
    stop_fitness       = 30,
    seed               = 42,
    peek               = on_gen,
)
sims = evaluator.run()

save_fitness_chart(evaluator.history, OUT, "demo_fitness.png")
paths, fitness = replay_best(sims[0], OUT, 300)
print(f"\nBest sim replay fitness: {fitness:.3f}")
print("All outputs in:", OUT)
