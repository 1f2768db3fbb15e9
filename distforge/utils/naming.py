"""String helpers for synthesized step names."""


def capitalize(name: str) -> str:
    """
    Upper-case the first character only.

    ``"play"`` -> ``"Play"``, ``"playBinary"`` -> ``"PlayBinary"``.
    Unlike ``str.capitalize`` the rest of the string is left alone.
    """
    if not name:
        return name
    return name[0].upper() + name[1:]
