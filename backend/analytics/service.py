"""
service.py — Decision Pipeline Microservice (Flask)
====================================================

Lightweight HTTP service exposing the decision pipeline to the dashboard
backend. Each posted reading is appended to the service's history window
and run through one decision cycle; records are published to MQTT.

Endpoints:
    POST /process    — Process one reading, return the decision
    POST /preload    — Warm up the accelerated kernel
    GET  /health     — Service health check
    GET  /status     — Acceleration state and history window size

Run:
    python -m backend.analytics.service
    # Starts on port 5050 by default (ANALYTICS_SERVICE_PORT)
"""

import logging

from flask import Flask, jsonify, request

from . import config
from .pipeline import DecisionPipeline
from .records import Reading
from .sink import MqttSink
from .utils import setup_logging
from .windowing import HistoryWindow

logger = logging.getLogger("analytics.service")


def create_app(pipeline: DecisionPipeline = None,
               history: HistoryWindow = None) -> Flask:
    """
    Build the Flask app around one pipeline and one history window.

    Args:
        pipeline: Decision pipeline. Defaults to one publishing to MQTT.
        history: History window. Defaults to config.HISTORY_SIZE readings.
    """
    app = Flask(__name__)
    app.config["PIPELINE"] = pipeline or DecisionPipeline(sink=MqttSink())
    app.config["HISTORY"] = history or HistoryWindow()

    @app.route("/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({
            "status": "OK",
            "service": "Aquaculture Decision Pipeline",
        })

    @app.route("/status", methods=["GET"])
    def status():
        window = app.config["HISTORY"]
        return jsonify({
            "accelerated": app.config["PIPELINE"].dispatcher.is_ready,
            "history_size": window.get_buffer_size(),
            "history_capacity": window.capacity,
        })

    @app.route("/preload", methods=["POST"])
    def preload():
        dispatcher = app.config["PIPELINE"].dispatcher
        return jsonify({"accelerated": dispatcher.preload()})

    @app.route("/process", methods=["POST"])
    def process():
        """
        Process one reading through the decision pipeline.

        Expects a JSON body with the reading fields, optionally
        `aerator_active` (bool, current actuator state).
        """
        data = request.get_json(force=True, silent=True)
        if not data:
            return jsonify({"error": "No JSON body provided"}), 400
        if not isinstance(data, dict):
            return jsonify({"error": "Reading must be a JSON object"}), 400

        aerator_active = data.get("aerator_active", False)
        if not isinstance(aerator_active, bool):
            return jsonify({"error": "aerator_active must be true or false"}), 400

        try:
            reading = Reading.from_dict(data)
        except (TypeError, ValueError) as e:
            return jsonify({"error": f"Invalid reading: {e}"}), 400

        window = app.config["HISTORY"]
        window.add_record(reading)
        result = app.config["PIPELINE"].process(
            reading, window.get_window(), aerator_active=aerator_active,
        )

        return jsonify({
            "status": "processed",
            "decision": result.to_dict(),
        })

    return app


if __name__ == "__main__":
    setup_logging()
    app = create_app()
    app.config["PIPELINE"].dispatcher.start_loading()
    port = config.SERVICE_PORT
    logger.info(f"Starting decision service on port {port}")
    app.run(host="0.0.0.0", port=port, debug=False)
