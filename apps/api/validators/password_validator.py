"""
Account password rules
Shared by partner registration and any future password change flow.
"""

from typing import Optional

MIN_LENGTH = 6
# bcrypt ignores everything past 72 bytes, so longer input would silently truncate
MAX_BYTES = 72


def password_problem(password: Optional[str]) -> Optional[str]:
    """Return the first rule the password breaks, or None if it is acceptable"""
    if not password:
        return "Password is required"
    if len(password) < MIN_LENGTH:
        return f"Password must be at least {MIN_LENGTH} characters long"
    if len(password.encode("utf-8")) > MAX_BYTES:
        return f"Password must not exceed {MAX_BYTES} bytes"
    return None


def validate_password(password: Optional[str]) -> None:
    """
    Raises:
        ValueError: If the password breaks a rule
    """
    problem = password_problem(password)
    if problem:
        raise ValueError(problem)
