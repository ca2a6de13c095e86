"""
Visualizer for EvoBrain.

Produces:
  1. World snapshots  – tile map with flowers and cows (heading + sensors)
  2. Fitness chart    – fitness percentiles over generations
  3. Network diagrams – wiring of one cow's expressed network
  4. CSV log          – per-generation stats
"""

import os
import csv
import math
import matplotlib
matplotlib.use("Agg")          # non-interactive backend (no display needed)
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches

from config import SAVE_DIR, LOG_CSV, FLOWER_TYPE


# ──────────────────────────────────────────────────────────────────────────────
# Directory setup
# ──────────────────────────────────────────────────────────────────────────────

def ensure_dirs(base: str = SAVE_DIR):
    for sub in ("snapshots", "charts", "neural"):
        os.makedirs(os.path.join(base, sub), exist_ok=True)


# ──────────────────────────────────────────────────────────────────────────────
# World snapshot
# ──────────────────────────────────────────────────────────────────────────────

TILE_COLORS = {
    FLOWER_TYPE: "#FFE14D",
    "water":     "#3A7BD5",
}


def save_world_snapshot(world, label: str, base: str = SAVE_DIR):
    """
    Render the odor world: grass background, typed tiles as coloured
    squares, each cow as a dot with a heading arrow and its sensors.
    """
    tm = world.tile_map
    W, H = tm.pixel_width, tm.pixel_height

    fig, ax = plt.subplots(figsize=(6, 6), dpi=100)
    ax.set_xlim(0, W)
    ax.set_ylim(H, 0)               # screen coordinates: y grows down
    ax.set_aspect("equal")
    ax.set_facecolor("#2E6B2E")
    fig.patch.set_facecolor("#111111")
    ax.tick_params(colors="white")
    for spine in ax.spines.values():
        spine.set_edgecolor("#444444")

    for tile_type, color in TILE_COLORS.items():
        for gx, gy in tm.tile_coordinates_of_type(tile_type):
            ax.add_patch(mpatches.Rectangle(
                (gx * tm.tile_size, gy * tm.tile_size), tm.tile_size, tm.tile_size,
                linewidth=0, facecolor=color, alpha=0.9))

    for e in world.entities:
        x, y = e.location
        ax.scatter([x], [y], c="white", s=40, zorder=3, edgecolors="black")
        rad = math.radians(e.heading)
        ax.annotate("", xy=(x + 25 * math.cos(rad), y - 25 * math.sin(rad)),
                    xytext=(x, y),
                    arrowprops=dict(arrowstyle="-|>", color="white", lw=1.0),
                    zorder=4)
        for s in e.sensors:
            if s.radius > 0:
                sx, sy = s.location()
                ax.scatter([sx], [sy], c="#FF88AA", s=8 + 30 * s.current_value,
                           zorder=3, linewidths=0)
        ax.text(x + 8, y - 8, e.name, color="white", fontsize=7, zorder=5)

    ax.set_title(f"{label}  ({len(world.entities)} cows)", color="white", fontsize=10)

    path = os.path.join(base, "snapshots", f"{label}.png")
    plt.savefig(path, dpi=100, bbox_inches="tight", facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# Fitness chart
# ──────────────────────────────────────────────────────────────────────────────

def save_fitness_chart(history: list, base: str = SAVE_DIR,
                       filename: str = "fitness.png", highlight: int = 10):
    """
    Plot every recorded fitness percentile across generations. The
    `highlight` percentile (the stopping criterion) is drawn bold.
    """
    if not history:
        return
    gens = [h["generation"] for h in history]
    keys = [k for k in history[0] if k.startswith("p")]

    fig, ax = plt.subplots(figsize=(12, 5), dpi=100)
    fig.patch.set_facecolor("#111111")
    ax.set_facecolor("#111111")

    cmap = plt.get_cmap("viridis")
    for i, key in enumerate(keys):
        bold = key == f"p{highlight}"
        ax.plot(gens, [h[key] for h in history],
                color="#FF8800" if bold else cmap(i / max(1, len(keys) - 1)),
                linewidth=2.0 if bold else 1.0,
                label=f"{key[1:]}th pct", zorder=3 if bold else 2)

    ax.set_xlabel("Generation", color="white")
    ax.set_ylabel("Flowers found (worst cow)", color="white")
    ax.tick_params(axis="both", colors="white")
    for spine in ax.spines.values():
        spine.set_edgecolor("#444444")
    ax.legend(facecolor="#222222", labelcolor="white", loc="upper left", fontsize=8)
    ax.set_title("Evolutionary Progress", color="white", fontsize=12)

    plt.tight_layout()
    path = os.path.join(base, "charts", filename)
    plt.savefig(path, dpi=100, bbox_inches="tight", facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# Network diagram
# ──────────────────────────────────────────────────────────────────────────────

def save_network_diagram(phenotype, label: str = "", base: str = SAVE_DIR):
    """
    Draw an expressed cow network. Each neuron collection is a row placed
    at the collection's location; inputs (blue) at the bottom, hidden
    (grey) in the middle, outputs (pink) on top.
    Green edges = positive weights, red edges = negative.
    """
    rows = [(phenotype.inputs,  "#4499FF"),
            (phenotype.hiddens, "#AAAAAA"),
            (phenotype.outputs, "#FF88AA")]

    node_pos = {}
    for collection, _ in rows:
        n = len(collection)
        cx, cy = collection.location
        for i, neuron in enumerate(collection.neuron_list):
            node_pos[id(neuron)] = (cx + (i - (n - 1) / 2) * 50.0, -cy)

    fig, ax = plt.subplots(figsize=(8, 6), dpi=100)
    fig.patch.set_facecolor("#111111")
    ax.set_facecolor("#111111")
    ax.axis("off")

    for s in phenotype.connections:
        if id(s.source) not in node_pos or id(s.target) not in node_pos:
            continue
        x1, y1 = node_pos[id(s.source)]
        x2, y2 = node_pos[id(s.target)]
        color = "#44FF44" if s.strength >= 0 else "#FF4444"
        lw    = 0.5 + min(3.0, abs(s.strength))
        ax.annotate("", xy=(x2, y2), xytext=(x1, y1),
                    arrowprops=dict(arrowstyle="-|>", color=color, lw=lw, alpha=0.7),
                    zorder=1)

    for collection, color in rows:
        for neuron in collection.neuron_list:
            x, y = node_pos[id(neuron)]
            ax.add_patch(plt.Circle((x, y), 12, color=color, zorder=3))
            ax.text(x, y, f"{neuron.activation:.1f}", color="black",
                    fontsize=6, ha="center", va="center", zorder=4)
        if collection.neuron_list:
            ys = [node_pos[id(n)][1] for n in collection.neuron_list]
            xs = [node_pos[id(n)][0] for n in collection.neuron_list]
            ax.text(min(xs) - 40, ys[0], collection.label, color="#CCCCCC",
                    ha="right", va="center", fontsize=9, fontweight="bold")

    xs = [p[0] for p in node_pos.values()] or [0]
    ys = [p[1] for p in node_pos.values()] or [0]
    ax.set_xlim(min(xs) - 120, max(xs) + 40)
    ax.set_ylim(min(ys) - 40, max(ys) + 40)
    ax.set_aspect("equal")
    ax.set_title(f"{label}  ({len(phenotype.connections)} connections)",
                 color="white", fontsize=10, pad=4)

    path = os.path.join(base, "neural", f"{label or 'network'}.png")
    plt.savefig(path, dpi=100, bbox_inches="tight", facecolor=fig.get_facecolor())
    plt.close(fig)
    return path


# ──────────────────────────────────────────────────────────────────────────────
# CSV log
# ──────────────────────────────────────────────────────────────────────────────

def append_csv(stats: dict, base: str = SAVE_DIR):
    """Append one generation's stats to a CSV file."""
    if not LOG_CSV:
        return
    path = os.path.join(base, "evolution_log.csv")
    file_exists = os.path.isfile(path)
    with open(path, "a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(stats.keys()))
        if not file_exists:
            writer.writeheader()
        writer.writerow(stats)
