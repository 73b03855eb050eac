"""
HTTP routes for the simulation driver and the social text features.

    POST /simulation/run          run N day cycles over a saved game state
    POST /ai/classify-and-pack    classify a post and build its comment pack
    POST /ai/compose              generate a post
    POST /ai/improve              punch up a post
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict

from flask import Flask, jsonify, request

from src.ai import classify_and_pack, compose_post, improve_post
from src.engine import Game, GameState, SimulationError, SimulationStatus

logger = logging.getLogger(__name__)

app = Flask(__name__)

DEFAULT_SIMULATION_DAYS = 5
MAX_SIMULATION_DAYS = 365


def _meta(started: float, seed: str) -> Dict[str, Any]:
    return {
        "latencyMs": int((time.monotonic() - started) * 1000),
        "seed": seed,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def _trades_closed_yesterday(game: Game) -> int:
    # bucket volume is the number of trades aggregated into it
    return int(sum(
        candle.volume
        for asset in game.state.assets.values()
        for candle in asset.price_history.yesterday
    ))


@app.post("/simulation/run")
def run_simulation():
    payload = request.get_json(force=True, silent=True) or {}
    game_state = payload.get("gameState")
    if not game_state:
        return jsonify({"error": "gameState required"}), 400
    try:
        days = int(payload.get("days", DEFAULT_SIMULATION_DAYS))
    except (TypeError, ValueError):
        return jsonify({"error": "days must be an integer"}), 400
    if days < 1 or days > MAX_SIMULATION_DAYS:
        return jsonify({"error": f"days must be between 1 and {MAX_SIMULATION_DAYS}"}), 400

    started = time.monotonic()
    try:
        game = Game(GameState.from_dict(game_state))
        if game.status is SimulationStatus.BACKFILL:
            game.backfill()

        total_trades = 0
        for day in range(days):
            if game.status is SimulationStatus.BEGINNING_OF_DAY:
                game.start_trading()
            game.process_day()
            trades = _trades_closed_yesterday(game)
            total_trades += trades
            logger.info(f"Simulation day {day + 1}/{days} complete: {trades} trades")

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(f"Simulation complete: {total_trades} trades in {elapsed_ms}ms")
        return jsonify({
            "success": True,
            "stats": {"days": days, "totalTrades": total_trades, "elapsedMs": elapsed_ms},
            "gameState": game.snapshot(),
        })
    except (KeyError, ValueError, SimulationError) as e:
        logger.exception("Simulation run failed")
        return jsonify({"error": str(e)}), 500


@app.post("/ai/classify-and-pack")
def ai_classify_and_pack():
    payload = request.get_json(force=True, silent=True) or {}
    text = payload.get("text")
    seed = payload.get("seed")
    if not text or not seed:
        return jsonify({"error": "Missing required fields: text, seed"}), 400

    started = time.monotonic()
    result = classify_and_pack(text, payload.get("mentions") or [], seed)
    return jsonify({**result, "_meta": _meta(started, seed)})


@app.post("/ai/compose")
def ai_compose():
    payload = request.get_json(force=True, silent=True) or {}
    seed = payload.get("seed")
    if not seed:
        return jsonify({"error": "Missing required field: seed"}), 400

    started = time.monotonic()
    result = compose_post(
        payload.get("modeHint") or "short",
        payload.get("assets") or [],
        payload.get("direction"),
        payload.get("timeframeDays") or 3,
        seed,
    )
    return jsonify({**result, "_meta": _meta(started, seed)})


@app.post("/ai/improve")
def ai_improve():
    payload = request.get_json(force=True, silent=True) or {}
    current_text = payload.get("currentText")
    seed = payload.get("seed")
    if not current_text or not seed:
        return jsonify({"error": "Missing required fields: currentText, seed"}), 400

    started = time.monotonic()
    result = improve_post(current_text, seed)
    return jsonify({**result, "_meta": _meta(started, seed)})


def main() -> None:
    from src.config import API_HOST, API_PORT

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    app.run(host=API_HOST, port=API_PORT)


if __name__ == "__main__":
    main()
