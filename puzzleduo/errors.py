class SessionError(Exception):
    """Base class for user-facing session failures."""

    def __init__(self, session_id: str, message: str):
        super().__init__(message)
        self.session_id = session_id
        self.message = message


class SessionNotFound(SessionError):
    def __init__(self, session_id: str):
        super().__init__(session_id, f'Session {session_id} was not found')


class SessionFull(SessionError):
    def __init__(self, session_id: str):
        super().__init__(session_id, f'Session {session_id} is full')
