"""Health check blueprint for Flask API."""
from flask import Blueprint, jsonify

bp = Blueprint('health', __name__, url_prefix='/api')


@bp.route('/health', methods=['GET'])
def health():
    return jsonify({'ok': True})
