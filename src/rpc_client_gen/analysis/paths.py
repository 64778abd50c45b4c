"""Request path helpers."""

import re

_SLASHES = re.compile(r"^/+|/+$")


def build_full_api_path(prefix: str = "", version: str = "", route: str = "", path: str = "") -> str:
    """Join prefix, version, controller route and handler path into one path.

    >>> build_full_api_path("/api", "v1", "users", "/:id")
    '/api/v1/users/:id'
    """
    full_path = ""
    for segment in (prefix, version, route, path):
        if segment and segment != "/":
            full_path += "/" + _SLASHES.sub("", segment)
    if path == "/" and full_path:
        full_path += "/"
    return full_path or "/"


def interpolate_path(base_path: str, parameter_tokens: list[str | None]) -> str:
    """Replace each ``:name`` segment whose token starts with ``:`` by ``${name}``."""
    if not base_path:
        return "/"

    path = base_path
    for token in parameter_tokens:
        if token and token.startswith(":"):
            name = token[1:]
            path = re.sub(rf":{re.escape(name)}(?![\w-])", lambda _: f"${{{name}}}", path)
    return path


def path_tokens(full_path: str) -> list[str]:
    """Names of the ``${name}`` tokens in a path, in order of appearance."""
    return re.findall(r"\$\{([^}]+)\}", full_path)
