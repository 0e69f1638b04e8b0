# File: tests/helpers.py

from app.core.security import make_token


def auth(user) -> dict:
    return {"Authorization": f"Bearer {make_token(user)}"}
