#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Clone the stock event consumer classes into a namespace of our choosing,
# undo a clone, and hunt for clones outside root\subscription.
#
# Clone workflow:
#   1. refuse root\subscription and root\default
#   2. refuse a class name already present in the target namespace
#   3. create every missing namespace along the path
#   4. derive the class from __EventConsumer with the stock properties and qualifiers
#   5. add a __Win32Provider pointing at the stock consumer provider CLSID
#   6. register the class with an __EventConsumerProviderRegistration

import re
from collections import namedtuple

from wmiclone.connection import WBEM_E_NOT_FOUND
from wmiclone.errors import ClassExistsError, ClassNotFoundError, UnsupportedOperation, WMICloneError, WMIOperationError
from wmiclone.helpers.logger import highlight
from wmiclone.namespace import SUBSCRIPTION_NAMESPACE, check_namespace, namespace_chain, normalize_namespace, same_namespace
from wmiclone.schema import EVENT_CONSUMER_CLASS, get_schema, provider_path, provider_values, registration_path, registration_values

Finding = namedtuple("Finding", ["namespace", "kind", "name", "detail"])

CONSUMER_CLASS_QUERY = f"SELECT * FROM meta_class WHERE __THIS ISA '{EVENT_CONSUMER_CLASS}'"
REGISTRATION_QUERY = "SELECT * FROM __EventConsumerProviderRegistration"

_CLASS_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")


def check_class_name(class_name):
    if not class_name or not _CLASS_NAME.match(class_name):
        raise WMICloneError(f"Invalid class name: {class_name!r} (letters, digits and underscores, starting with a letter)")
    return class_name


def clone_consumer(client, kind, namespace, class_name=None):
    """
    Copy the stock ``kind`` consumer class into ``namespace`` as ``class_name``.

    Returns the ClassInfo of the new class. Calls run strictly in order and
    the first failure propagates; nothing already written is rolled back.
    """
    schema = get_schema(kind)
    class_name = check_class_name(class_name or schema.base_class)
    namespace = check_namespace(namespace)
    logger = client.logger
    logger.extra["namespace"] = namespace

    if not client.can_derive_classes:
        raise UnsupportedOperation(f"The {client.name} backend cannot derive classes, use the scripting backend")

    if client.namespace_exists(namespace):
        if client.class_exists(namespace, class_name):
            raise ClassExistsError(namespace, class_name)
    else:
        for path in namespace_chain(namespace):
            if client.namespace_exists(path):
                continue
            client.create_namespace(path)
            logger.success(f"Created namespace {highlight(path)}")

    client.derive_class(namespace, schema, class_name)
    logger.success(f"Created class {highlight(class_name)} deriving from {schema.superclass} ({len(schema.properties)} properties copied from {schema.base_class})")

    client.put_instance(namespace, "__Win32Provider", provider_values(schema, class_name))
    logger.success(f"Bound provider {provider_path(class_name)} (CLSID {schema.provider_clsid})")

    client.put_instance(namespace, "__EventConsumerProviderRegistration", registration_values(class_name))
    logger.success(f"Registered {highlight(class_name)} as an event consumer class")

    return client.get_class(namespace, class_name)


def _delete_if_present(client, namespace, path):
    try:
        client.delete_instance(namespace, path)
    except WMIOperationError as e:
        if e.status != WBEM_E_NOT_FOUND:
            raise
        client.logger.display(f"{path} not present, skipping")
        return False
    client.logger.success(f"Removed {path}")
    return True


def remove_consumer(client, namespace, class_name, drop_namespace=False):
    """Undo clone_consumer: registration, provider, class and optionally the namespace."""
    namespace = check_namespace(namespace)
    class_name = check_class_name(class_name)
    logger = client.logger
    logger.extra["namespace"] = namespace

    if not client.class_exists(namespace, class_name):
        raise ClassNotFoundError(namespace, class_name)

    _delete_if_present(client, namespace, registration_path(class_name))
    _delete_if_present(client, namespace, provider_path(class_name))

    client.delete_class(namespace, class_name)
    logger.success(f"Removed class {highlight(class_name)}")

    if not drop_namespace:
        return False

    if client.child_namespaces(namespace):
        logger.fail(f"{namespace} still holds child namespaces, leaving it in place")
        return False

    leftovers = [row["__CLASS"] for row in client.query(namespace, "SELECT * FROM meta_class") if not row["__CLASS"].startswith("__")]
    if leftovers:
        logger.fail(f"{namespace} still holds classes ({', '.join(sorted(leftovers))}), leaving it in place")
        return False

    client.delete_namespace(namespace)
    logger.success(f"Removed namespace {highlight(namespace)}")
    return True


def hunt_consumers(client, root="root"):
    """
    Walk every namespace below ``root`` and report event consumer classes and
    consumer provider registrations found anywhere but root\\subscription.
    """
    logger = client.logger
    findings = []
    pending = [normalize_namespace(root)]

    while pending:
        namespace = pending.pop(0)
        logger.extra["namespace"] = namespace
        try:
            pending.extend(client.child_namespaces(namespace))
        except WMIOperationError as e:
            logger.fail(f"Cannot enumerate {namespace}: {e}")
            continue

        if same_namespace(namespace, SUBSCRIPTION_NAMESPACE):
            continue

        try:
            classes = client.query(namespace, CONSUMER_CLASS_QUERY)
            registrations = client.query(namespace, REGISTRATION_QUERY)
        except WMIOperationError as e:
            logger.fail(f"Cannot query {namespace}: {e}")
            continue

        start = len(findings)
        for row in classes:
            name = row.get("__CLASS") or ""
            if name.startswith("__"):
                continue
            superclass = row.get("__SUPERCLASS")
            findings.append(Finding(namespace, "consumer class", name, f"derives from {superclass}" if superclass else ""))

        for row in registrations:
            consumers = ", ".join(row.get("ConsumerClassNames") or [])
            findings.append(Finding(namespace, "provider registration", row.get("Provider"), f"consumers: {consumers}"))

        for finding in findings[start:]:
            logger.highlight(f"{finding.kind}: {finding.name} {finding.detail}".rstrip())

    logger.extra["namespace"] = normalize_namespace(root)
    return findings
