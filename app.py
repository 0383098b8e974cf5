import logging

import click
from flask import Flask, jsonify, request
from flask.cli import FlaskGroup
from werkzeug.exceptions import InternalServerError

import config
from database import create_db_engine, create_session_factory, init_db
from errors import ServiceError
from ingest import initialize_database
from services import (
    get_category_stats,
    get_price_ranges,
    get_statistics,
    list_transactions,
)

logger = logging.getLogger(__name__)


def _error(message: str, status: int):
    return jsonify({"message": message}), status


# ---------------------------
# App factory
# ---------------------------

def create_app(database_url: str = None, source_url: str = None, session_factory=None):
    """
    Build the Flask app around one store handle.
    Pass `session_factory` to run the routes against an existing store.
    """
    app = Flask(__name__)

    if session_factory is None:
        engine = create_db_engine(database_url or config.DATABASE_URL)
        init_db(engine)
        session_factory = create_session_factory(engine)

    app.extensions["session_factory"] = session_factory
    app.config["SOURCE_URL"] = source_url or config.SOURCE_URL
    app.config["FETCH_TIMEOUT"] = config.FETCH_TIMEOUT

    _register_routes(app, session_factory)
    _register_cli(app, session_factory)

    @app.errorhandler(InternalServerError)
    def handle_internal_error(e):
        logger.error("Unhandled error: %s", getattr(e, "original_exception", None) or e)
        return _error("Internal server error", 500)

    return app


# ---------------------------
# Routes
# ---------------------------

def _register_routes(app: Flask, session_factory):

    @app.route("/initialize")
    def initialize():
        try:
            initialize_database(
                session_factory, app.config["SOURCE_URL"], app.config["FETCH_TIMEOUT"]
            )
        except ServiceError as e:
            if e.status_code < 500:
                return _error("Invalid data format", e.status_code)
            logger.exception("Error initializing database")
            return _error("Failed to initialize database", e.status_code)

        return jsonify({"message": "Database initialized successfully"}), 200

    @app.route("/transactions")
    def transactions():
        try:
            result = list_transactions(
                session_factory,
                page=request.args.get("page"),
                per_page=request.args.get("perPage"),
                search=request.args.get("search", ""),
            )
        except ServiceError as e:
            if e.status_code < 500:
                return _error(str(e), e.status_code)
            logger.exception("Error listing transactions")
            return _error(f"Failed to list transactions: {e}", e.status_code)

        return jsonify(result), 200

    @app.route("/statistics")
    def statistics():
        try:
            result = get_statistics(
                session_factory,
                month=request.args.get("month"),
                year=request.args.get("year"),
            )
        except ServiceError as e:
            if e.status_code < 500:
                return _error(str(e), e.status_code)
            logger.exception("Error fetching statistics")
            return _error("Failed to fetch statistics", e.status_code)

        return jsonify(result), 200

    @app.route("/price-range")
    def price_range():
        try:
            result = get_price_ranges(session_factory, month=request.args.get("month"))
        except ServiceError as e:
            if e.status_code < 500:
                return _error(str(e), e.status_code)
            logger.exception("Error fetching price range data")
            return _error("Failed to fetch price range data", e.status_code)

        return jsonify(result), 200

    @app.route("/category-stats")
    def category_stats():
        try:
            result = get_category_stats(session_factory, month=request.args.get("month"))
        except ServiceError as e:
            if e.status_code < 500:
                return _error(str(e), e.status_code)
            logger.exception("Error fetching category stats")
            return _error("Failed to fetch category stats", e.status_code)

        return jsonify(result), 200


# ---------------------------
# CLI
# ---------------------------

def _register_cli(app: Flask, session_factory):

    @app.cli.command("initialize")
    @click.option("--source-url", default=None, help="Override the dataset URL.")
    def initialize_command(source_url):
        """Fetch the dataset and replace the stored transactions."""
        try:
            count = initialize_database(
                session_factory,
                source_url or app.config["SOURCE_URL"],
                app.config["FETCH_TIMEOUT"],
            )
        except ServiceError as e:
            raise click.ClickException(str(e))
        click.echo(f"Database initialized successfully ({count} transactions)")


def main():
    config.configure_logging()
    cli = FlaskGroup(create_app=create_app, help="Product transactions API.")
    cli()


# ---------------------------
# Main
# ---------------------------

if __name__ == "__main__":
    config.configure_logging()
    app = create_app()
    logger.info("Server is running on http://%s:%d", config.HOST, config.PORT)
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)
