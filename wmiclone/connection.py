#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from collections import namedtuple

from impacket.dcerpc.v5.dcom.wmi import WBEMSTATUS

from wmiclone.errors import WMICloneError, WMIOperationError, UnsupportedOperation
from wmiclone.logger import WMICloneAdapter
from wmiclone.namespace import normalize_namespace, split_namespace

ClassInfo = namedtuple("ClassInfo", ["namespace", "name", "superclass", "qualifiers", "properties"])

WBEM_E_NOT_FOUND = WBEMSTATUS.enumItems.WBEM_E_NOT_FOUND.value
WBEM_E_INVALID_NAMESPACE = WBEMSTATUS.enumItems.WBEM_E_INVALID_NAMESPACE.value
WBEM_E_INVALID_CLASS = WBEMSTATUS.enumItems.WBEM_E_INVALID_CLASS.value

LOCAL_HOSTS = (".", "localhost", "127.0.0.1", "::1")


def status_name(code):
    try:
        return WBEMSTATUS.enumItems(code & 0xffffffff).name
    except ValueError:
        return None


def wmi_status(error):
    """Recover the WBEM status code from an impacket or COM error, if it carries one."""
    code = getattr(error, "error_code", None)
    if code is None and hasattr(error, "get_error_code"):
        code = error.get_error_code()
    if code is None and hasattr(error, "excepinfo") and error.excepinfo:
        code = error.excepinfo[5]
    if code is None and hasattr(error, "hresult"):
        code = error.hresult
    if code is None:
        return None
    return code & 0xffffffff


def wrap_error(operation, error):
    if isinstance(error, WMIOperationError):
        return error
    code = wmi_status(error)
    return WMIOperationError(operation, error, code, status_name(code) if code is not None else None)


class WMIClient(object):
    """
    Namespace-addressed operations against one host's WMI repository.

    Subclasses open one service handle per namespace and implement the
    primitive calls; the namespace and class lookups built on WQL live here.
    """

    name = "WMI"
    can_derive_classes = False

    def __init__(self, host=".", username="", password="", domain="", hashes=None, aes_key="", do_kerberos=False, kdc_host=None, timeout=2, logger=None):
        self.host = host or "."
        self.username = username or ""
        self.password = password or ""
        self.domain = domain or ""
        self.lmhash = ""
        self.nthash = ""
        self.aes_key = aes_key or ""
        self.do_kerberos = do_kerberos
        self.kdc_host = kdc_host
        self.timeout = timeout
        if hashes:
            if hashes.count(":") > 1:
                raise WMICloneError(f"Invalid hash format: {hashes} (expected NTHASH or LMHASH:NTHASH)")
            if hashes.find(":") != -1:
                self.lmhash, self.nthash = hashes.split(":")
            else:
                self.nthash = hashes
        self.logger = logger or WMICloneAdapter(extra={"backend": self.name, "host": self.host, "namespace": None})

    @property
    def is_local(self):
        return self.host.lower() in LOCAL_HOSTS

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.disconnect()

    def connect(self):
        pass

    def disconnect(self):
        pass

    def query(self, namespace, wql):
        raise NotImplementedError

    def put_instance(self, namespace, class_name, values):
        raise UnsupportedOperation(f"The {self.name} backend cannot create instances")

    def delete_instance(self, namespace, path):
        raise NotImplementedError

    def delete_class(self, namespace, class_name):
        raise NotImplementedError

    def derive_class(self, namespace, schema, class_name):
        raise UnsupportedOperation(f"The {self.name} backend cannot derive classes, use the scripting backend")

    def get_class(self, namespace, class_name):
        raise UnsupportedOperation(f"The {self.name} backend cannot read class definitions")

    def namespace_exists(self, path):
        parent, leaf = split_namespace(path)
        if not parent:
            return True
        try:
            rows = self.query(parent, f"SELECT Name FROM __NAMESPACE WHERE Name = '{leaf}'")
        except WMIOperationError as e:
            if e.status == WBEM_E_INVALID_NAMESPACE:
                return False
            raise
        return len(rows) > 0

    def child_namespaces(self, path):
        path = normalize_namespace(path)
        return [f"{path}\\{row['Name']}" for row in self.query(path, "SELECT Name FROM __NAMESPACE")]

    def create_namespace(self, path):
        parent, leaf = split_namespace(path)
        self.logger.debug(f"Creating namespace {leaf} under {parent}")
        return self.put_instance(parent, "__NAMESPACE", {"Name": leaf})

    def delete_namespace(self, path):
        parent, leaf = split_namespace(path)
        self.delete_instance(parent, f'__NAMESPACE.Name="{leaf}"')

    def class_exists(self, namespace, class_name):
        try:
            rows = self.query(namespace, f"SELECT * FROM meta_class WHERE __CLASS = '{class_name}'")
        except WMIOperationError as e:
            if e.status in (WBEM_E_INVALID_NAMESPACE, WBEM_E_INVALID_CLASS, WBEM_E_NOT_FOUND):
                return False
            raise
        return len(rows) > 0
