from flask import Blueprint, current_app, jsonify
from puzzleduo.errors import SessionNotFound

sessions = Blueprint('sessions', __name__)


@sessions.route('/sessions/<string:session_id>', methods=['GET'])
def get_session_state(session_id):
    """
    Returns the public state of a live session. Puzzle values, quiz answers
    and connection ids are never included.
    """
    registry = current_app.extensions['puzzleduo'].registry
    try:
        with registry.locked(session_id, touch=False) as session:
            return jsonify(session.to_dict()), 200
    except SessionNotFound as exc:
        return jsonify({'error': exc.message}), 404
