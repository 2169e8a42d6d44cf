#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Windows only: drives the WMI scripting API (SWbemLocator/SWbemServices)
# through pywin32, the same object model the ManagementClass wrappers sit on.

from wmiclone.connection import ClassInfo, WMIClient, wrap_error
from wmiclone.errors import UnsupportedOperation
from wmiclone.namespace import normalize_namespace

WBEM_IMPERSONATION_LEVEL_IMPERSONATE = 3
WBEM_AUTHENTICATION_LEVEL_PKT_PRIVACY = 6


class ScriptingClient(WMIClient):
    name = "SCRIPTING"
    can_derive_classes = True

    def __init__(self, *args, locator=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.locator = locator
        self._services = {}

    def connect(self):
        if self.nthash or self.lmhash:
            raise UnsupportedOperation("The scripting backend authenticates with a password only, use the dcom backend for pass-the-hash")
        if self.locator is None:
            try:
                import win32com.client
            except ImportError:
                raise UnsupportedOperation("The scripting backend needs pywin32 on a Windows host, use the dcom backend elsewhere")

            self.locator = win32com.client.Dispatch("WbemScripting.SWbemLocator")

    def disconnect(self):
        self._services = {}

    @property
    def authority(self):
        if self.do_kerberos:
            return f"kerberos:{self.domain}\\{self.host}"
        if self.domain:
            return f"ntlmdomain:{self.domain}"
        return ""

    def services(self, namespace):
        namespace = normalize_namespace(namespace)
        key = namespace.lower()
        if key not in self._services:
            if self.locator is None:
                self.connect()
            try:
                if self.is_local:
                    # WMI rejects explicit credentials on local connections
                    services = self.locator.ConnectServer(".", namespace)
                else:
                    services = self.locator.ConnectServer(self.host, namespace, self.username, self.password, "", self.authority)
                services.Security_.ImpersonationLevel = WBEM_IMPERSONATION_LEVEL_IMPERSONATE
                services.Security_.AuthenticationLevel = WBEM_AUTHENTICATION_LEVEL_PKT_PRIVACY
            except Exception as e:
                raise wrap_error(f"Opening namespace {namespace}", e)
            self._services[key] = services
        return self._services[key]

    @staticmethod
    def system_property(wmi_object, name):
        return wmi_object.SystemProperties_.Item(name).Value

    def _record(self, wmi_object):
        record = {p.Name: p.Value for p in wmi_object.Properties_}
        record["__CLASS"] = wmi_object.Path_.Class
        record["__SUPERCLASS"] = self.system_property(wmi_object, "__SUPERCLASS")
        return record

    def query(self, namespace, wql):
        services = self.services(namespace)
        self.logger.debug(f"Executing WQL syntax in {namespace}: {wql}")
        try:
            return [self._record(wmi_object) for wmi_object in services.ExecQuery(wql)]
        except Exception as e:
            raise wrap_error(f"Executing WQL {wql}", e)

    def put_instance(self, namespace, class_name, values):
        services = self.services(namespace)
        try:
            instance = services.Get(class_name).SpawnInstance_()
            for name, value in values.items():
                instance.Properties_.Item(name).Value = value
            path = instance.Put_()
        except Exception as e:
            raise wrap_error(f"Adding {class_name} instance in {namespace}", e)
        self.logger.debug(f"Adding {path.RelPath} - OK")
        return path.RelPath

    def delete_instance(self, namespace, path):
        try:
            self.services(namespace).Delete(path)
        except Exception as e:
            raise wrap_error(f"Removing {path}", e)
        self.logger.debug(f"Removing {path} - OK")

    def delete_class(self, namespace, class_name):
        try:
            self.services(namespace).Delete(class_name)
        except Exception as e:
            raise wrap_error(f"Removing class {class_name}", e)
        self.logger.debug(f"Removing class {class_name} - OK")

    def derive_class(self, namespace, schema, class_name):
        services = self.services(namespace)
        try:
            wmi_class = services.Get(schema.superclass).SpawnDerivedClass_()
            wmi_class.Path_.Class = class_name

            for q in schema.class_qualifiers:
                wmi_class.Qualifiers_.Add(q.name, q.value, q.to_subclass, q.to_instance, q.overridable)

            for spec in schema.properties:
                wmi_property = wmi_class.Properties_.Add(spec.name, spec.cim_type, spec.is_array)
                if spec.default is not None:
                    wmi_property.Value = spec.default
                for q in spec.qualifiers:
                    wmi_property.Qualifiers_.Add(q.name, q.value, q.to_subclass, q.to_instance, q.overridable)

            wmi_class.Put_()
        except Exception as e:
            raise wrap_error(f"Deriving {class_name} from {schema.superclass} in {namespace}", e)
        self.logger.debug(f"Adding class {class_name} - OK")

    def get_class(self, namespace, class_name):
        services = self.services(namespace)
        try:
            wmi_class = services.Get(class_name)
            qualifiers = {q.Name: q.Value for q in wmi_class.Qualifiers_}
            properties = {
                p.Name: {
                    "type": p.CIMType,
                    "is_array": p.IsArray,
                    "value": p.Value,
                    "qualifiers": {q.Name: q.Value for q in p.Qualifiers_},
                }
                for p in wmi_class.Properties_
            }
            superclass = self.system_property(wmi_class, "__SUPERCLASS")
        except Exception as e:
            raise wrap_error(f"Reading class {class_name} in {namespace}", e)
        return ClassInfo(
            normalize_namespace(namespace),
            wmi_class.Path_.Class,
            superclass,
            qualifiers,
            properties,
        )
