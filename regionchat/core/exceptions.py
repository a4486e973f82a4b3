# regionchat/core/exceptions.py

from fastapi import HTTPException, status

# Base Exception
class BaseAPIException(HTTPException):
    """Base class for all custom API exceptions."""
    def __init__(self, status_code: int, detail: str, headers: dict = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


# Authentication & Account Exceptions
class InvalidCredentialsException(BaseAPIException):
    """Exception raised when credentials are invalid."""
    def __init__(self, detail="Invalid username or password"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

class UserAlreadyExistsException(BaseAPIException):
    """Exception raised when an account with the username already exists."""
    def __init__(self, detail="Username already exists"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class InvalidTokenException(BaseAPIException):
    """Exception raised when a token is invalid or expired."""
    def __init__(self, detail="Invalid authentication credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class UserNotFoundException(BaseAPIException):
    """Exception raised when a user is not found."""
    def __init__(self, detail="User not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


# Presence Exceptions
class UsernameTakenException(BaseAPIException):
    """Exception raised when an active session already holds the username."""
    def __init__(self, detail="Username already taken"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class UsernameUnsafeException(BaseAPIException):
    """Exception raised when a username fails moderation."""
    def __init__(
        self,
        detail="Username contains inappropriate language. Please choose another username.",
    ):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class AlreadyJoinedException(BaseAPIException):
    """Exception raised when a connection sends a second join."""
    def __init__(self, detail="This connection has already joined the chat"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


# Message Exceptions
class ContentFilteredException(BaseAPIException):
    """Raised (and reported to the sender) when a message was redacted by moderation."""
    def __init__(
        self,
        detail="Your message contained inappropriate language and has been filtered.",
    ):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail=detail)

class RecipientOfflineException(BaseAPIException):
    """Exception raised when a private message recipient has no live session."""
    def __init__(self, recipient: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {recipient} is not online or doesn't exist.",
        )

class MessageNotFoundException(BaseAPIException):
    """Exception raised when a message is not found."""
    def __init__(self, detail="Message not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


# Social Graph Exceptions
class RelationshipConflictException(BaseAPIException):
    """Exception raised for self, duplicate or already-accepted friend requests."""
    def __init__(self, detail="Friend request already exists"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class RelationshipNotFoundException(BaseAPIException):
    """Exception raised when the friendship row an operation needs does not exist."""
    def __init__(self, detail="Friend request not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


# Validation & Input Exceptions
class InvalidInputException(BaseAPIException):
    """Exception raised when input data is invalid."""
    def __init__(self, detail="Invalid input data"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


# Database & System Exceptions
class PersistenceFailureException(BaseAPIException):
    """Exception raised when a durable-store operation fails."""
    def __init__(self, detail="Storage operation failed"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)

class NotificationFailureException(BaseAPIException):
    """Exception raised when the SMS provider could not deliver a message."""
    def __init__(self, detail="Failed to send test SMS"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
