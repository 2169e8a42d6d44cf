#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import os
import re
import tempfile

import pytest

# keep first-run setup and config writes out of the real ~/.wmiclone
os.environ["WMICLONE_HOME"] = tempfile.mkdtemp(prefix="wmiclone-tests-")

from impacket.dcerpc.v5.dcom.wmi import WBEMSTATUS

from wmiclone import first_run, logger as wmiclone_logging
from wmiclone.connection import ClassInfo, WMIClient
from wmiclone.errors import WMIOperationError
from wmiclone.logger import WMICloneAdapter

INSTANCE_KEYS = {
    "__NAMESPACE": "Name",
    "__Win32Provider": "Name",
    "__EventConsumerProviderRegistration": "Provider",
}


def wbem_error(operation, status):
    return WMIOperationError(operation, None, status.value, status.name)


class FakeRepository(WMIClient):
    """In-memory WMI repository speaking the handful of WQL shapes the client layer issues."""

    name = "FAKE"
    can_derive_classes = True

    def __init__(self, namespaces=("root", "root\\subscription", "root\\default", "root\\cimv2"), **kwargs):
        kwargs.setdefault("logger", WMICloneAdapter(extra={"backend": self.name, "host": ".", "namespace": None}))
        super().__init__(**kwargs)
        self.namespaces = {ns.lower(): ns for ns in namespaces}
        self.classes = {}
        self.instances = {}
        self.calls = []
        self.fail_on = {}
        self.unreadable = set()

    def _check(self, operation, namespace):
        if operation in self.fail_on:
            raise self.fail_on[operation]
        if namespace.lower() not in self.namespaces or namespace.lower() in self.unreadable:
            raise wbem_error(f"Opening namespace {namespace}", WBEMSTATUS.enumItems.WBEM_E_INVALID_NAMESPACE)

    def children(self, namespace):
        prefix = namespace.lower() + "\\"
        return [ns for key, ns in self.namespaces.items() if key.startswith(prefix) and "\\" not in key[len(prefix):]]

    def query(self, namespace, wql):
        self._check("query", namespace)
        ns_classes = self.classes.get(namespace.lower(), {})

        match = re.match(r"SELECT Name FROM __NAMESPACE(?: WHERE Name = '(.+)')?$", wql)
        if match:
            names = [ns.rpartition("\\")[2] for ns in self.children(namespace)]
            if match.group(1):
                names = [n for n in names if n.lower() == match.group(1).lower()]
            return [{"Name": n, "__CLASS": "__NAMESPACE"} for n in names]

        match = re.match(r"SELECT \* FROM meta_class WHERE __CLASS = '(.+)'$", wql)
        if match:
            return [{"__CLASS": c.name} for c in ns_classes.values() if c.name.lower() == match.group(1).lower()]

        match = re.match(r"SELECT \* FROM meta_class WHERE __THIS ISA '(.+)'$", wql)
        if match:
            rows = [{"__CLASS": match.group(1), "__SUPERCLASS": None}]
            rows += [{"__CLASS": c.name, "__SUPERCLASS": c.superclass} for c in ns_classes.values() if match.group(1) in self.lineage(namespace, c.name)[1:]]
            return rows

        if wql == "SELECT * FROM meta_class":
            return [{"__CLASS": "__SystemClass"}] + [{"__CLASS": c.name} for c in ns_classes.values()]

        match = re.match(r"SELECT \* FROM (\w+)$", wql)
        if match:
            return [dict(values) for (cls, values) in self.instances.get(namespace.lower(), {}).values() if cls == match.group(1)]

        raise AssertionError(f"unexpected WQL: {wql}")

    def lineage(self, namespace, class_name):
        ns_classes = self.classes.get(namespace.lower(), {})
        chain = [class_name]
        while chain[-1] in ns_classes:
            chain.append(ns_classes[chain[-1]].superclass)
        return chain

    def put_instance(self, namespace, class_name, values):
        self._check("put_instance", namespace)
        self.calls.append(("put_instance", namespace, class_name))
        key = INSTANCE_KEYS[class_name]
        path = '{}.{}="{}"'.format(class_name, key, str(values[key]).replace('"', '\\"'))
        if class_name == "__NAMESPACE":
            child = f"{namespace}\\{values['Name']}"
            self.namespaces[child.lower()] = child
        else:
            self.instances.setdefault(namespace.lower(), {})[path] = (class_name, dict(values))
        return path

    def delete_instance(self, namespace, path):
        self._check("delete_instance", namespace)
        self.calls.append(("delete_instance", namespace, path))
        match = re.match(r'__NAMESPACE\.Name="(.+)"$', path)
        if match:
            child = f"{namespace}\\{match.group(1)}".lower()
            if child not in self.namespaces:
                raise wbem_error(f"Removing {path}", WBEMSTATUS.enumItems.WBEM_E_NOT_FOUND)
            del self.namespaces[child]
            self.classes.pop(child, None)
            self.instances.pop(child, None)
            return
        if path not in self.instances.get(namespace.lower(), {}):
            raise wbem_error(f"Removing {path}", WBEMSTATUS.enumItems.WBEM_E_NOT_FOUND)
        del self.instances[namespace.lower()][path]

    def delete_class(self, namespace, class_name):
        self._check("delete_class", namespace)
        self.calls.append(("delete_class", namespace, class_name))
        if class_name not in self.classes.get(namespace.lower(), {}):
            raise wbem_error(f"Removing class {class_name}", WBEMSTATUS.enumItems.WBEM_E_NOT_FOUND)
        del self.classes[namespace.lower()][class_name]

    def derive_class(self, namespace, schema, class_name):
        self._check("derive_class", namespace)
        self.calls.append(("derive_class", namespace, class_name))
        ns_classes = self.classes.setdefault(namespace.lower(), {})
        if class_name in ns_classes:
            raise wbem_error(f"Deriving {class_name}", WBEMSTATUS.enumItems.WBEM_E_ALREADY_EXISTS)
        ns_classes[class_name] = ClassInfo(
            namespace,
            class_name,
            schema.superclass,
            {q.name: q.value for q in schema.class_qualifiers},
            {p.name: {"type": p.cim_type, "is_array": p.is_array, "value": p.default, "qualifiers": {q.name: q.value for q in p.qualifiers}} for p in schema.properties},
        )

    def get_class(self, namespace, class_name):
        self._check("get_class", namespace)
        try:
            return self.classes[namespace.lower()][class_name]
        except KeyError:
            raise wbem_error(f"Reading class {class_name}", WBEMSTATUS.enumItems.WBEM_E_NOT_FOUND)

    def writes(self):
        return [call for call in self.calls if call[0] in ("put_instance", "derive_class", "delete_instance", "delete_class")]


@pytest.fixture(scope="function")
def repo():
    yield FakeRepository()


@pytest.fixture(scope="function")
def wmiclone_home(tmp_path, monkeypatch):
    home = tmp_path / "wmiclone"
    monkeypatch.setattr(first_run, "WMICLONE_PATH", str(home))
    monkeypatch.setattr(first_run, "LOGS_PATH", str(home / "logs"))
    monkeypatch.setattr(first_run, "CONFIG_PATH", str(home / "wmiclone.conf"))
    monkeypatch.setattr(wmiclone_logging, "LOGS_PATH", str(home / "logs"))
    yield home
