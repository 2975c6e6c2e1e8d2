"""
Item factories for tests
"""

import uuid


def new_id():
    return str(uuid.uuid4())


def lexeme(language_id=None, **fields):
    item = {"type": "Lexeme", "language": {"id": language_id or new_id()}}
    item.update(fields)
    return item


def language(**fields):
    item = {"type": "Language"}
    item.update(fields)
    return item
