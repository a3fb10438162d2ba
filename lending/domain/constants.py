"""Domain business rules and constants."""

from typing import Final

# Business Rules - Core domain constraints
MAX_TITLE_LENGTH: Final = 255
MAX_AUTHOR_LENGTH: Final = 255
MAX_NAME_LENGTH: Final = 255
MAX_BORROWED_BOOKS: Final = 3
