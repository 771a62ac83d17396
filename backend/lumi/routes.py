from flask import Blueprint, jsonify, current_app

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Lumi puzzle server!'})

@main.route('/api/state')
def game_state():
    """Roster and phase for views that load before the first socket update."""
    return jsonify(current_app.extensions['lumi'].broadcaster.snapshot())
