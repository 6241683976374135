def start_idle_sweeper(app) -> bool:
    """Start the background loop that reclaims abandoned sessions.

    - No-ops in TESTING mode
    - No-ops when SESSION_IDLE_TIMEOUT_SEC is 0
    - Runs ``sweep_idle`` every SWEEP_INTERVAL_SEC on a Socket.IO background task

    Returns True when a worker was started.
    """
    from puzzleduo import socketio

    max_idle = int(app.config.get('SESSION_IDLE_TIMEOUT_SEC', 0))
    interval = int(app.config.get('SWEEP_INTERVAL_SEC', 60))
    if app.config.get('TESTING') or max_idle <= 0 or interval <= 0:
        return False

    services = app.extensions['puzzleduo']

    def _worker():
        app.logger.info(f"[sweep-start] idle_timeout={max_idle}s interval={interval}s")
        while not services.closed:
            socketio.sleep(interval)
            if services.closed:
                break
            try:
                services.reconciler.sweep_idle(max_idle)
            except Exception:
                app.logger.exception("[sweep-error] idle sweep failed")

    socketio.start_background_task(_worker)
    return True
