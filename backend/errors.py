"""Exception types shared across the combat loop."""


class DirectiveError(ValueError):
    """Base error for directive files and their contents."""
    def __init__(self, message: str, source: str = ""):
        self.message = message
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


class DirectiveParseError(DirectiveError):
    """A directive file could not be parsed."""
    pass


class PriorityConfigError(DirectiveError):
    """A priority model was constructed with invalid parameters."""
    pass


class CommandError(ValueError):
    """A single command token is malformed (bad arguments, unknown name)."""
    def __init__(self, command: str, message: str):
        self.command = command
        self.message = message
        super().__init__(f"{command!r}: {message}")


class ActorError(RuntimeError):
    """An actor could not perform the requested capability."""
    pass
