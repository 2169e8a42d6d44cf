#!/usr/bin/env python3
# -*- coding: utf-8 -*-


class WMICloneError(Exception):
    pass


class InvalidNamespaceError(WMICloneError):
    pass


class ProtectedNamespaceError(WMICloneError):
    def __init__(self, namespace):
        self.namespace = namespace
        super().__init__(f"Refusing to use the {namespace} namespace, pick a namespace other than root\\subscription or root\\default")


class ClassExistsError(WMICloneError):
    def __init__(self, namespace, class_name):
        self.namespace = namespace
        self.class_name = class_name
        super().__init__(f"Class {class_name} already exists in {namespace}")


class ClassNotFoundError(WMICloneError):
    def __init__(self, namespace, class_name):
        self.namespace = namespace
        self.class_name = class_name
        super().__init__(f"Class {class_name} not found in {namespace}")


class UnsupportedOperation(WMICloneError):
    pass


class WMIOperationError(WMICloneError):
    """A call into the WMI management API failed.

    ``status`` is the WBEM/HRESULT code when one could be recovered from the
    underlying error and ``status_name`` its symbolic name.
    """

    def __init__(self, operation, error, status=None, status_name=None):
        self.operation = operation
        self.error = error
        self.status = status
        self.status_name = status_name
        if status is not None:
            message = f"{operation} - ERROR: {status_name or 'Unknown'} (0x{status:08x})"
        else:
            message = f"{operation} - ERROR: {error}"
        super().__init__(message)
