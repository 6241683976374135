from puzzleduo import create_app, socketio

app = create_app()

if __name__ == '__main__':
    try:
        # Use SocketIO server to enable websockets in dev
        socketio.run(app, host=app.config['HOST'], port=app.config['PORT'], debug=True)
    finally:
        app.extensions['puzzleduo'].close()
