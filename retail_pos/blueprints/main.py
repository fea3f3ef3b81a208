"""Main blueprint with the health check endpoint."""
from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from retail_pos.database import get_session
from retail_pos.middleware import get_state

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates the database connection.

    Returns:
        200: Healthy (DB connected)
        500: Unhealthy (DB error)
    """
    try:
        row = get_session().execute(text("SELECT 1 as health_check")).fetchone()
    except SQLAlchemyError as e:
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected',
            'error': str(e),
            'message': 'Failed to connect to database'
        }), 500

    if not row or row[0] != 1:
        return jsonify({
            'status': 'unhealthy',
            'database': 'error',
            'message': 'Unexpected query result'
        }), 500

    state = get_state()
    with state.lock:
        counts = {'products': len(state.catalog), 'sales': len(state.ledger)}

    return jsonify({
        'status': 'healthy',
        'database': 'connected',
        'state': counts,
    }), 200
