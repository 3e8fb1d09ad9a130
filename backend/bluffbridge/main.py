from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Bluff Bridge game server!'})


@main.route('/api/rooms/<string:code>/state', methods=['GET'])
def get_room_state(code):
    """
    Returns the same public snapshot the room's players receive.
    """
    snapshot = current_app.extensions['room_registry'].snapshot(code)
    if snapshot is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(snapshot)
