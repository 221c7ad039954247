from flask import Blueprint, jsonify
from pianovs import get_registry

rooms = Blueprint('rooms', __name__)

@rooms.route('/<string:room_id>', methods=['GET'])
def get_room(room_id):
    """
    Summarises a live room so a client can check an id taken from its URL
    before opening the socket.
    """
    room = get_registry().get(room_id.lower())
    if not room:
        return jsonify({'error': 'Room not found'}), 404
    with room.lock:
        return jsonify(room.to_dict()), 200
