from flask import Blueprint, jsonify
from pianovs import get_registry

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the PianoVS game server!'})

@main.route('/health')
def health_check():
    return jsonify({'status': 'healthy', 'rooms': len(get_registry())})
