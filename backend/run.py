from config import Config
from pianovs import create_app, socketio

app = create_app()
 
if __name__ == '__main__':
    # Werkzeug serves the websocket transport when no eventlet/gevent is installed
    socketio.run(app, host=Config.HOST, port=Config.PORT, allow_unsafe_werkzeug=True)
