# backend-services/stock-service/app.py
import atexit
import os
import sys
import logging
from logging.handlers import RotatingFileHandler

from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS
from pymongo.errors import ConnectionFailure

from config import Settings, load_settings
from database.connection import DatabaseManager
from database.stock_store import StockStore
from services.price_refresher import PriceRefresher
from services.stock_service import StockService

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Module loggers that should emit through the same handlers as app.logger
_MODULE_LOGGERS = [
    "config",
    "database.connection",
    "database.stock_store",
    "services.price_refresher",
    "services.stock_service",
    "apscheduler",
]

api = Blueprint("stock_api", __name__)


# --- Logging Setup ---
def setup_logging(app, settings: Settings):
    """Configures console (and optional rotating file) logging for the Flask app."""
    log_level = getattr(logging, settings.log_level, logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if settings.log_dir:
        os.makedirs(settings.log_dir, exist_ok=True)
        log_file = os.path.join(settings.log_dir, "stock_service.log")
        file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    app.logger.setLevel(log_level)
    app.logger.propagate = False

    # Clear existing handlers to avoid duplication
    for h in list(app.logger.handlers):
        app.logger.removeHandler(h)
    for h in handlers:
        app.logger.addHandler(h)

    # prevent werkzeug from duplicating to root/stdout
    werk = logging.getLogger("werkzeug")
    werk.propagate = False
    for h in list(werk.handlers):
        if isinstance(h, logging.StreamHandler):
            werk.removeHandler(h)
    werk.addHandler(console_handler)

    for name in _MODULE_LOGGERS:
        module_logger = logging.getLogger(name)
        module_logger.setLevel(logging.WARNING if name == "apscheduler" else log_level)
        module_logger.propagate = False
        for h in list(module_logger.handlers):
            module_logger.removeHandler(h)
        for h in handlers:
            module_logger.addHandler(h)

    app.logger.info("Stock service logging initialized.")
# --- End of Logging Setup ---


def _service() -> StockService:
    return current_app.extensions["stock_service"]


@api.route('/health', methods=['GET'])
def health():
    return jsonify({"status": "healthy"}), 200


@api.route('/api/stock/<symbol>', methods=['GET'])
def get_stock_price(symbol):
    """Latest stored price for an exact symbol match."""
    try:
        stock = _service().get_price(symbol)
        if stock is None:
            return jsonify({"message": "Stock not found"}), 404
        return jsonify(stock.model_dump()), 200
    except Exception as e:
        current_app.logger.error(f"Error in GET /api/stock/{symbol}: {e}", exc_info=True)
        return jsonify({"message": "Internal Server Error"}), 500


@api.route('/api/stock_names', methods=['GET'])
def get_stock_names():
    """All stocks as {label, value} pairs. Order is not guaranteed."""
    try:
        names = _service().list_stock_names()
        return jsonify([option.model_dump() for option in names]), 200
    except Exception as e:
        current_app.logger.error(f"Error in GET /api/stock_names: {e}", exc_info=True)
        return jsonify({"message": "Internal Server Error"}), 500


@api.route('/api/add_stock', methods=['POST'])
def add_stock():
    payload = request.get_json(silent=True)
    try:
        record = _service().add_stock(payload)
    except ValueError as ve:
        current_app.logger.warning(f"Rejected new stock payload: {ve}")
        return jsonify({"error": "Invalid stock data", "details": str(ve)}), 400
    except Exception as e:
        current_app.logger.error(f"Error saving new stock: {e}", exc_info=True)
        return jsonify({"error": "Internal Server Error"}), 500
    return jsonify(record.to_api()), 201


@api.route('/api/delete_stock/<symbol>', methods=['DELETE'])
def delete_stock(symbol):
    try:
        deleted = _service().delete_stock(symbol)
    except Exception as e:
        current_app.logger.error(f"Error deleting stock {symbol}: {e}", exc_info=True)
        return jsonify({"error": "Internal Server Error"}), 500
    if deleted is None:
        return jsonify({"error": "Stock not found"}), 404
    return jsonify({"message": "Stock deleted successfully"}), 200


@api.route('/api/internal/refresh', methods=['POST'])
def trigger_refresh():
    """Runs one refresh tick synchronously and reports its outcome."""
    try:
        summary = _service().refresh_prices()
    except Exception as e:
        current_app.logger.error(f"Manual price refresh failed: {e}", exc_info=True)
        return jsonify({"error": "Internal Server Error"}), 500
    if summary.skipped:
        return jsonify({"error": "Refresh already in progress"}), 409
    return jsonify({"message": "Price refresh completed.", **summary.model_dump(exclude={"skipped"})}), 200


def create_app(stock_service: StockService, settings: Settings = None) -> Flask:
    """Builds the Flask app around an already constructed StockService."""
    settings = settings or load_settings()
    app = Flask(__name__)
    app.extensions["stock_service"] = stock_service

    origins = "*" if settings.cors_origins == ["*"] else settings.cors_origins
    CORS(app, origins=origins)

    setup_logging(app, settings)
    app.register_blueprint(api)
    return app


def build_service(settings: Settings, db_manager: DatabaseManager) -> StockService:
    """Connects to MongoDB and wires the store and refresher into a StockService."""
    collection = db_manager.connect()
    store = StockStore(collection)
    store.ensure_indexes()
    refresher = PriceRefresher(
        store,
        interval_seconds=settings.refresh_interval_sec,
        max_workers=settings.refresh_max_workers,
    )
    return StockService(store, refresher)


def main():
    settings = load_settings()
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    logger = logging.getLogger(__name__)

    db_manager = DatabaseManager(
        settings.mongo_uri,
        settings.db_name,
        server_selection_timeout_ms=settings.server_selection_timeout_ms,
        max_retries=settings.connect_retries,
        retry_delay=settings.retry_delay_sec,
    )
    try:
        stock_service = build_service(settings, db_manager)
    except ConnectionFailure as e:
        logger.critical(f"Stock service could not connect to MongoDB: {e}")
        sys.exit(1)

    app = create_app(stock_service, settings)
    stock_service.start()
    # atexit runs in reverse order: stop the refresher before closing the client
    atexit.register(db_manager.close)
    atexit.register(stock_service.shutdown)

    app.logger.info(f"Server is running on port {settings.port}")
    app.run(host='0.0.0.0', port=settings.port, threaded=True)


if __name__ == '__main__':
    main()
