"""Block join-code generation."""

import logging
import secrets
from typing import Callable

from sqlalchemy.orm import Session

from ..errors import JoinCodeGenerationError
from ..models import Block

logger = logging.getLogger(__name__)

# No 0/O or 1/I, students copy these by hand
JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
JOIN_CODE_LENGTH = 6
MAX_ATTEMPTS = 5


def random_code(choice: Callable[[str], str] = secrets.choice) -> str:
    return ''.join(choice(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))


def generate_join_code(
    code_exists: Callable[[str], bool],
    choice: Callable[[str], str] = secrets.choice,
    max_attempts: int = MAX_ATTEMPTS,
) -> str:
    """Draw codes until one is unused, giving up after ``max_attempts``."""
    for attempt in range(1, max_attempts + 1):
        code = random_code(choice)
        if not code_exists(code):
            return code
        logger.info(f"Join code collision on attempt {attempt}")
    raise JoinCodeGenerationError(max_attempts)


def block_code_exists(db: Session, code: str) -> bool:
    """Check every teacher's blocks for the code."""
    return db.query(Block.id).filter(Block.code == code).first() is not None


def find_block_by_code(db: Session, code: str) -> Block | None:
    return db.query(Block).filter(Block.code == code).first()
