# app.py
import logging
import os

from dotenv import find_dotenv, load_dotenv
from flask import Flask, jsonify, render_template, request
from flask_cors import CORS

from leaderboard import LEADERBOARD_LIMIT, InvalidSubmission, Leaderboard, StoreFault
from store import select_store


DEFAULT_PORT = 3000
DEFAULT_DATABASE_URL = "postgresql://localhost:5432/leaderboard"
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging() -> None:
    # startup lines (database target, listen address) are logged at INFO
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(os.environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper())


def create_app(database_url=None, store=None) -> Flask:
    """
    Build the app and pick the score store once.

    Pass `store` to skip the database probe (tests), or `database_url` to
    override DATABASE_URL.
    """
    load_dotenv(find_dotenv(usecwd=True))
    configure_logging()

    app = Flask(__name__)
    CORS(app)  # the game is usually served from another origin

    if store is None:
        if database_url is None:
            database_url = os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)
        store = select_store(database_url)

    board = Leaderboard(store)
    app.extensions["leaderboard"] = board

    if board.durable:
        app.logger.info("Leaderboard DB ready")
    else:
        app.logger.warning("Leaderboard running in IN-MEMORY mode; scores are lost on restart")

    # --- Routes ---

    @app.route("/")
    def landing():
        return render_template("index.html", limit=LEADERBOARD_LIMIT)

    @app.get("/api/leaderboard")
    def get_leaderboard():
        try:
            return jsonify(board.get_top(LEADERBOARD_LIMIT))
        except Exception:
            # StoreFault or anything unexpected: never leak details to the caller
            app.logger.exception("Failed to fetch leaderboard")
            return jsonify({"error": "Failed to fetch leaderboard"}), 500

    @app.post("/api/score")
    def submit_score():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}

        try:
            board.submit_score(data.get("handle"), data.get("score"))
        except InvalidSubmission as e:
            app.logger.debug(f"Rejected score submission: {e}")
            return jsonify({"error": str(e)}), 400
        except StoreFault:
            app.logger.exception("Failed to save score")
            return jsonify({"error": "Failed to save score"}), 500
        except Exception:
            app.logger.exception("Unexpected error while saving score")
            return jsonify({"error": "Failed to save score"}), 500

        return jsonify({"message": "Score saved successfully"}), 201

    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "durable": board.durable}), 200

    return app


if __name__ == "__main__":
    app = create_app()  # loads .env before PORT is read
    port = int(os.environ.get("PORT", DEFAULT_PORT))
    app.logger.info(f"Server running on http://localhost:{port}")
    app.run(host="0.0.0.0", port=port)
