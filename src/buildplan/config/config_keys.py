# src/buildplan/config/config_keys.py
"""Canonical `package:name` keys for builders and targets.

Definitions are keys declared in a package's own file. Usages are keys
that refer to something, possibly in another package.

    definition  $default -> P:P   name -> P:name    Q:name -> Q:name
    usage       $default -> P:P   :name -> P:name   name -> name:name
"""

from buildplan.constants import DEFAULT_KEY


def _check_shape(key: str) -> None:
    if not key or key.count(":") > 1:
        xmsg = f"Invalid key {key!r}: expected `name` or `package:name`"
        raise ValueError(xmsg)
    package, sep, name = key.partition(":")
    if sep and (not package or not name):
        xmsg = f"Invalid key {key!r}: package and name must both be non-empty"
        raise ValueError(xmsg)


def normalize_key_definition(key: str, package: str) -> str:
    if key == DEFAULT_KEY:
        return f"{package}:{package}"
    _check_shape(key)
    if ":" in key:
        return key
    return f"{package}:{key}"


def normalize_key_usage(key: str, package: str) -> str:
    if key == DEFAULT_KEY:
        return f"{package}:{package}"
    if key.startswith(":"):
        key = package + key
    _check_shape(key)
    if ":" in key:
        return key
    return f"{key}:{key}"


def key_package(key: str) -> str:
    """The package part of a normalized key."""
    return key.split(":", 1)[0]
