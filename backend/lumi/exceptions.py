"""Exceptions raised by the coordination services.

None of these reach a socket client: the broadcaster catches ``LumiError`` at
the dispatch seam and drops the offending message. The image blueprint maps
``ImageError`` to JSON error responses.
"""


class LumiError(Exception):
    """Base class for every domain error."""
    pass


class MalformedMessage(LumiError):
    """An inbound payload is missing a required field or has a bad value."""

    def __init__(self, kind, reason):
        self.kind = kind
        self.reason = reason
        super().__init__(f"Malformed {kind} message: {reason}")


class UnknownConnection(LumiError):
    """The connection has not been bound to a participant by a join."""

    def __init__(self, connection_id):
        self.connection_id = connection_id
        super().__init__(f"Connection {connection_id} is not bound to a participant")


class NotGameMaster(LumiError):
    """A phase change or reset was requested by a regular player."""

    def __init__(self, persistent_id):
        self.persistent_id = persistent_id
        super().__init__(f"Participant {persistent_id} is not a game master")


class InvalidTransition(LumiError):
    def __init__(self, current, action):
        self.current = current
        self.action = action
        super().__init__(f"Cannot {action} while {current}")


class ImageError(LumiError):
    status_code = 400


class ImageNotFound(ImageError):
    status_code = 404

    def __init__(self, image_id):
        self.image_id = image_id
        super().__init__('Image not found')


class InvalidImage(ImageError):
    pass
