"""
Request models and validation rules
"""
from typing import List

from pydantic import ValidationError


def format_validation_errors(error: ValidationError) -> List[str]:
    """Flatten a pydantic ValidationError into 'path: message' strings"""
    messages = []
    for item in error.errors():
        path = ".".join(str(part) for part in item.get("loc", ()))
        message = item.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        messages.append(f"{path}: {message}" if path else message)
    return messages
