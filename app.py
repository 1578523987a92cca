import hmac
import logging
import traceback
import uuid
import os
import signal
import sys
import time
from datetime import datetime
from flask import Flask, request, jsonify, render_template
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from partsmatch.config import Config
from partsmatch.search_log import SearchLog
from partsmatch.service import PartsMatchService
from utils.custom_exception import CustomException, InvalidQueryError, CategoryNotFoundError
from utils.logger import get_logger

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = get_logger(__name__)

# Initialize Flask app
app = Flask(__name__)
app.config['JSON_SORT_KEYS'] = False
app.json.sort_keys = False

CORS(app)

# Rate limiting
limiter = Limiter(
    app=app,
    key_func=get_remote_address,
    default_limits=["2000 per day", "300 per hour"],
    storage_uri="memory://",
    strategy="fixed-window"
)

# Global service instances
service = None
search_log = None
admin_enabled = False


def initialize_services(catalog_path: str = None, log_dir: str = None) -> bool:
    """Load the catalog, build the search index and open the search log."""
    global service, search_log, admin_enabled

    try:
        logger.info("Initializing services...")

        try:
            admin_enabled = Config.validate()
        except CustomException as ce:
            admin_enabled = False
            logger.warning(f"{ce}; admin endpoints disabled")

        if search_log is not None:
            search_log.close()
        search_log = SearchLog(log_dir or Config.LOG_DIR, retention_days=Config.LOG_RETENTION_DAYS)

        service = PartsMatchService(
            catalog_path=catalog_path or Config.CATALOG_PATH,
            search_log=search_log,
        )
        logger.info(f"✅ All services initialized: {len(service.index)} categories, {service.index.entry_count} entries")
        return True

    except Exception as e:
        logger.error(f"Service initialization failed: {e}\n{traceback.format_exc()}")
        return False


def _admin_authorized() -> bool:
    key = request.args.get("key", "")
    return admin_enabled and bool(key) and hmac.compare_digest(key.encode("utf-8"), Config.ADMIN_KEY.encode("utf-8"))


@app.before_request
def before_request():
    """Log request details"""
    if request.path not in ('/health', '/api/health'):
        logger.info(f"Incoming request: {request.method} {request.path}")


@app.after_request
def after_request(response):
    """Log response details and add security headers"""
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-XSS-Protection'] = '1; mode=block'

    if request.path not in ('/health', '/api/health'):
        logger.info(f"Response: {request.method} {request.path} - {response.status_code}")

    return response


@app.route('/')
def index():
    """Serve the landing page"""
    return render_template('index.html')


@app.route('/dashboard')
def dashboard():
    """Serve the admin dashboard page (it fetches stats with the admin key)"""
    return render_template('dashboard.html')


@app.route('/search', methods=['GET'])
@app.route('/api/search', methods=['GET'])
@limiter.limit("60 per minute")
def search():
    """Find catalog lines compatible with a device model"""
    start_time = time.time()
    request_id = str(uuid.uuid4())[:8]
    part = request.args.get('part')
    model = request.args.get('model')

    if service is None:
        logger.error(f"[{request_id}] Services not initialized")
        return jsonify({
            "error": "Service temporarily unavailable",
            "request_id": request_id
        }), 503

    try:
        result = service.search(part, model)
        response_data = result.to_dict()
        response_data["request_id"] = request_id
        response_data["processing_time"] = round(time.time() - start_time, 4)
        logger.info(f"[{request_id}] '{model}' in '{result.part}': {result.total_matches} matches")
        return jsonify(response_data)

    except InvalidQueryError as e:
        logger.warning(f"[{request_id}] Invalid query: {e}")
        return jsonify({"error": str(e), "request_id": request_id}), 400

    except CategoryNotFoundError as e:
        logger.warning(f"[{request_id}] {e}")
        return jsonify({
            "error": "Invalid part category",
            "part": e.hint,
            "available": e.available,
            "request_id": request_id
        }), 404

    except Exception as e:
        logger.error(f"[{request_id}] Search error: {e}\n{traceback.format_exc()}")
        return jsonify({
            "error": "Internal server error",
            "request_id": request_id,
            "processing_time": round(time.time() - start_time, 4)
        }), 500


@app.route('/api/categories', methods=['GET'])
def categories():
    """List the searchable part categories"""
    if service is None:
        return jsonify({"error": "Service temporarily unavailable"}), 503
    listing = service.list_categories()
    return jsonify({"count": len(listing), "categories": listing})


@app.route('/health')
@limiter.exempt
def simple_health():
    """Simple health check for load balancers"""
    return jsonify({"status": "healthy"}), 200


@app.route('/api/health', methods=['GET'])
@limiter.exempt
def health():
    """Health check with index status"""
    health_data = {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "version": "1.0.0",
        "services": {}
    }
    status_code = 200

    if service is not None:
        index = service.index
        health_data["services"]["index"] = {
            "status": "healthy" if len(index) else "degraded",
            "categories": len(index),
            "entries": index.entry_count,
        }
        if not len(index):
            health_data["status"] = "degraded"
    else:
        health_data["services"]["index"] = {"status": "unhealthy"}
        health_data["status"] = "unhealthy"
        status_code = 503

    health_data["services"]["search_log"] = {
        "status": "healthy" if search_log is not None else "disabled"
    }
    health_data["services"]["admin"] = {
        "status": "healthy" if admin_enabled else "disabled"
    }
    return jsonify(health_data), status_code


@app.route('/api/admin/stats', methods=['GET'])
def admin_stats():
    """Index and search statistics, guarded by the shared admin key"""
    if not _admin_authorized():
        logger.warning(f"Rejected admin stats request from {get_remote_address()}")
        return jsonify({"error": "Forbidden"}), 403
    if service is None:
        return jsonify({"error": "Service temporarily unavailable"}), 503
    try:
        return jsonify(service.stats())
    except Exception as e:
        logger.error(f"Admin stats failed: {e}\n{traceback.format_exc()}")
        return jsonify({"error": "Failed to compute statistics"}), 500


@app.route('/api/admin/reload', methods=['POST'])
def admin_reload():
    """Rebuild the index from the catalog file without restarting"""
    if not _admin_authorized():
        logger.warning(f"Rejected admin reload request from {get_remote_address()}")
        return jsonify({"error": "Forbidden"}), 403
    if service is None:
        return jsonify({"error": "Service temporarily unavailable"}), 503
    try:
        index = service.reload()
    except CustomException as e:
        logger.error(f"Admin reload failed: {e}")
        return jsonify({
            "error": "Catalog reload failed",
            "detail": str(e),
            "categories": len(service.index)
        }), 409
    return jsonify({
        "message": "Catalog reloaded",
        "categories": len(index),
        "entries": index.entry_count
    })


def shutdown_handler(signum, frame):
    """Graceful shutdown"""
    logger.info(f"Shutdown signal {signum} received. Starting graceful shutdown...")
    if search_log is not None:
        search_log.close()
        logger.info("Search log closed")
    logger.info("Shutdown complete")
    sys.exit(0)


if __name__ == "__main__":
    logger.info("🚀 Starting Universal Parts API...")

    if not initialize_services():
        logger.error("❌ Service initialization failed. Exiting.")
        sys.exit(1)

    signal.signal(signal.SIGINT, shutdown_handler)
    signal.signal(signal.SIGTERM, shutdown_handler)

    port = int(os.getenv("PORT", Config.PORT))
    host = os.getenv("HOST", Config.HOST)

    logger.info(f"✅ Starting Flask server on http://{host}:{port}")

    app.run(
        host=host,
        port=port,
        debug=False,
        threaded=True
    )
else:
    if not initialize_services():
        logger.error("❌ Service initialization failed in WSGI mode")
