from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Puzzle Duo game server!'})

@main.route('/api/health')
def health():
    registry = current_app.extensions['puzzleduo'].registry
    return jsonify({'status': 'ok', 'sessions': registry.counts()})
