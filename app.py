import logging

from flask import Flask, jsonify

from config import load_settings
from webhook_routes import webhook_bp


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> Flask:
    settings = load_settings()
    configure_logging(settings.log_level)

    app = Flask(__name__)

    # Register GitHub webhook routes
    app.register_blueprint(webhook_bp)

    @app.route("/")
    def index():
        return jsonify({"message": "Preview Deployments Bot Running"})

    @app.route("/health")
    def health():
        return jsonify({"status": "running"})

    return app


app = create_app()

if __name__ == "__main__":
    app.run(debug=True)
