#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import re

from wmiclone.errors import InvalidNamespaceError, ProtectedNamespaceError

ROOT = "root"
SUBSCRIPTION_NAMESPACE = "root\\subscription"
PROTECTED_NAMESPACES = ("root\\subscription", "root\\default")

# //./root/x, \\.\root\x, //HOST/root/x
_SERVER_PREFIX = re.compile(r"^[\\/]{2}[^\\/]+[\\/]")
_INVALID_CHARS = re.compile(r'[*?"<>|:]')


def normalize_namespace(name):
    """
    Canonical backslash form of a namespace path, always rooted at ``root``.

    ``evil``, ``root/evil`` and ``\\\\.\\root\\evil`` all become ``root\\evil``.
    """
    if name is None or not str(name).strip():
        raise InvalidNamespaceError("Namespace name is empty")

    path = _SERVER_PREFIX.sub("", str(name).strip())
    parts = [p for p in re.split(r"[\\/]+", path) if p]
    if not parts:
        raise InvalidNamespaceError(f"Invalid namespace: {name}")

    for part in parts:
        if _INVALID_CHARS.search(part):
            raise InvalidNamespaceError(f"Invalid character in namespace: {name}")

    if parts[0].lower() == ROOT:
        parts = parts[1:]
    return "\\".join([ROOT] + parts)


def is_protected(path):
    return normalize_namespace(path).lower() in PROTECTED_NAMESPACES


def check_namespace(name):
    """Normalize ``name`` and refuse the namespaces the consumer clone must stay out of."""
    path = normalize_namespace(name)
    if path.lower() == ROOT:
        raise InvalidNamespaceError("The root namespace itself cannot hold a cloned consumer")
    if is_protected(path):
        raise ProtectedNamespaceError(path)
    return path


def split_namespace(path):
    parent, _, leaf = normalize_namespace(path).rpartition("\\")
    return parent, leaf


def namespace_chain(path):
    parts = normalize_namespace(path).split("\\")
    return ["\\".join(parts[:i]) for i in range(2, len(parts) + 1)]


def same_namespace(first, second):
    return normalize_namespace(first).lower() == normalize_namespace(second).lower()


def wmi_path(namespace, host="."):
    """Namespace path in the form IWbemLevel1Login::NTLMLogin expects."""
    path = normalize_namespace(namespace).replace("\\", "/")
    return f"//{host}/{path}"
