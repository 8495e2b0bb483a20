class EnvelopeValidationException(Exception):
    def __init__(self, message: str):
        super().__init__(message)

class NoRunningEventLoopException(RuntimeError):
    def __init__(self):
        super().__init__(
            "A Result can only be created while an event loop is running."
            "\nCall the verbs of the RestOnDynamoClient from a coroutine (for example one started with asyncio.run),"
            "\neven when the outcome is only received through a callback."
        )
