"""
EvoBrain Server  –  Flask + Server-Sent Events
==============================================

Endpoints:
  POST /start        Start (or restart) an evolution run with JSON config body
  POST /stop         Stop the running evolution after the current generation
  GET  /stream       SSE stream – browser subscribes here for live data
  GET  /status       Current run state as JSON

Run:
  python server.py
  # → http://localhost:5000
"""

import threading
import queue
import json

from flask import Flask, Response, request, jsonify

from cow_grazing import make_evaluator
from config import (
    MAX_GENERATIONS, ITERATIONS_PER_RUN, POPULATION_SIZE,
    ELIMINATION_RATIO, NUM_COWS, STOP_PERCENTILE, STOP_FITNESS,
)

# ──────────────────────────────────────────────────────────────────────────────
app = Flask(__name__)

# Global run state
_run_thread:  threading.Thread | None = None
_stop_event   = threading.Event()
_gen_queue    = queue.Queue(maxsize=200)   # holds dicts to stream
_run_status   = {
    "running":    False,
    "generation": 0,
    "max_gen":    0,
    "cfg":        {},
}
_status_lock  = threading.Lock()


# ──────────────────────────────────────────────────────────────────────────────
# CORS helper – allow a browser front end on any origin to call us
# ──────────────────────────────────────────────────────────────────────────────

@app.after_request
def add_cors(response):
    response.headers["Access-Control-Allow-Origin"]  = "*"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    return response

@app.route("/", methods=["OPTIONS"])
@app.route("/<path:p>", methods=["OPTIONS"])
def preflight(p=""):
    return Response(status=200)


# ──────────────────────────────────────────────────────────────────────────────
# Evolution thread
# ──────────────────────────────────────────────────────────────────────────────

def build_cfg(data: dict) -> dict:
    """Merge request JSON with defaults. Raises ValueError on bad values."""
    cfg = {
        "max_generations":    int(data.get("maxGenerations",   MAX_GENERATIONS)),
        "iterations_per_run": int(data.get("iterationsPerRun", ITERATIONS_PER_RUN)),
        "population_size":    int(data.get("populationSize",   POPULATION_SIZE)),
        "elimination_ratio":  float(data.get("eliminationRatio", ELIMINATION_RATIO)),
        "num_cows":           int(data.get("numCows",          NUM_COWS)),
        "stop_percentile":    float(data.get("stopPercentile", STOP_PERCENTILE)),
        "stop_fitness":       float(data.get("stopFitness",    STOP_FITNESS)),
        "seed":               data.get("seed"),
    }
    if cfg["seed"] is not None:
        cfg["seed"] = int(cfg["seed"])
    if cfg["population_size"] < 1:
        raise ValueError("populationSize must be at least 1")
    if not 0 <= cfg["elimination_ratio"] < 1:
        raise ValueError("eliminationRatio must be within [0, 1)")
    if cfg["num_cows"] < 1:
        raise ValueError("numCows must be at least 1")
    if not 0 <= cfg["stop_percentile"] <= 100:
        raise ValueError("stopPercentile must be within [0, 100]")
    return cfg


def _put(out_q: queue.Queue, payload: dict):
    # Non-blocking put; drop oldest frame if queue full
    if out_q.full():
        try:
            out_q.get_nowait()
        except queue.Empty:
            pass
    out_q.put(payload)


def _run_worker(cfg: dict, stop_evt: threading.Event, out_q: queue.Queue):
    """Run the evolution in a background thread; push each generation into queue."""

    def on_gen(evaluator):
        if stop_evt.is_set():
            return

        stats = evaluator.history[-1]
        payload = {
            "type":        "generation",
            "gen":         evaluator.generation,
            "maxGen":      cfg["max_generations"],
            "percentiles": {k[1:]: round(v, 3) for k, v in stats.items()
                            if k.startswith("p")},
            "mean":        round(stats["mean"], 3),
            "elapsedS":    stats["elapsed_s"],
            "label":       (f"{cfg['stop_percentile']:g}th Percentile Fitness: "
                            f"{evaluator.nth_percentile_fitness(cfg['stop_percentile']):.3f}"),
        }
        with _status_lock:
            _run_status["generation"] = evaluator.generation
        _put(out_q, payload)

    evaluator = make_evaluator(peek=on_gen, stop_event=stop_evt, **cfg)

    with _status_lock:
        if stop_evt is _stop_event:
            _run_status["running"] = True

    try:
        sims = evaluator.run()
        if sims and not stop_evt.is_set():
            best = sims[0]
            _put(out_q, {
                "type":     "best",
                "fitness":  evaluator.best_fitness,
                "genes":    [g.num_genes for g in best.cow_genotypes],
                "world":    best.odor_world.snapshot(),
            })
    finally:
        # A replaced run must not touch the status of the one that replaced it
        with _status_lock:
            if stop_evt is _stop_event:
                _run_status["running"] = False
        out_q.put({"type": "done", "gen": evaluator.generation})


# ──────────────────────────────────────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────────────────────────────────────

@app.route("/start", methods=["POST"])
def start():
    global _run_thread, _stop_event, _gen_queue

    try:
        cfg = build_cfg(request.get_json(force=True, silent=True) or {})
    except (TypeError, ValueError) as e:
        return jsonify({"status": "error", "error": str(e)}), 400

    # Stop any running evolution
    _stop_event.set()
    if _run_thread and _run_thread.is_alive():
        _run_thread.join(timeout=3)

    # Reset
    _stop_event = threading.Event()
    _gen_queue  = queue.Queue(maxsize=200)
    with _status_lock:
        _run_status["generation"] = 0
        _run_status["running"]    = False
        _run_status["cfg"]        = cfg
        _run_status["max_gen"]    = cfg["max_generations"]

    _run_thread = threading.Thread(
        target=_run_worker,
        args=(cfg, _stop_event, _gen_queue),
        daemon=True,
    )
    _run_thread.start()
    return jsonify({"status": "started", "cfg": cfg})


@app.route("/stop", methods=["POST"])
def stop():
    _stop_event.set()
    return jsonify({"status": "stopped"})


@app.route("/status", methods=["GET"])
def status():
    with _status_lock:
        return jsonify(dict(_run_status))


@app.route("/stream", methods=["GET"])
def stream():
    """SSE endpoint – browser subscribes and receives each generation as an event."""
    q = _gen_queue

    def event_gen():
        # Send a hello so the browser knows it's connected
        yield "data: {\"type\": \"connected\"}\n\n"

        while True:
            try:
                payload = q.get(timeout=1)
                yield f"data: {json.dumps(payload)}\n\n"
                if payload.get("type") == "done":
                    break
            except queue.Empty:
                # Keep-alive ping
                yield "data: {\"type\": \"ping\"}\n\n"

    return Response(
        event_gen(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",    # disable nginx buffering if behind proxy
        },
    )


# ──────────────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    print("=" * 50)
    print("  EvoBrain Server  →  http://localhost:5000")
    print("  SSE stream       →  http://localhost:5000/stream")
    print("=" * 50)
    app.run(host="0.0.0.0", port=5000, threaded=True, debug=False)
