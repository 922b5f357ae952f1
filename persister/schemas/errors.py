class SessionStoreError(Exception):
    pass


class NotFoundError(SessionStoreError):
    pass


class ConflictError(SessionStoreError):
    pass


class BackendUnavailableError(SessionStoreError):
    pass
