class ChatdeskError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(ChatdeskError):
    pass


class ValidationError(ChatdeskError):
    pass
