def shout(value: str) -> str:
    return value.upper() + "!"
