# showreel/routes/health.py
from datetime import datetime, timezone

from flask import Blueprint, jsonify

from showreel import __version__

health_bp = Blueprint('health', __name__, url_prefix='/api')


@health_bp.route('/health', methods=['GET'])
def health():
    return jsonify({
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
    })
