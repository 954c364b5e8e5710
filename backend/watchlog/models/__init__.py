from watchlog.models.user import User
from watchlog.models.movie import Movie

__all__ = [
    "User",
    "Movie",
]
