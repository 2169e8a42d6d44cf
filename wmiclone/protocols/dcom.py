#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging

from impacket.dcerpc.v5 import transport
from impacket.dcerpc.v5.dtypes import NULL
from impacket.dcerpc.v5.dcomrt import DCOMConnection
from impacket.dcerpc.v5.dcom.wmi import CLSID_WbemLevel1Login, IID_IWbemLevel1Login, IWbemLevel1Login

from wmiclone.connection import WMIClient, status_name, wrap_error
from wmiclone.errors import WMIOperationError
from wmiclone.namespace import normalize_namespace, wmi_path


def dcom_FirewallChecker(iInterface, timeout):
    stringBindings = iInterface.get_cinstance().get_string_bindings()
    for strBinding in stringBindings:
        if strBinding["wTowerId"] == 7:
            if strBinding["aNetworkAddr"].find("[") >= 0:
                binding, _, bindingPort = strBinding["aNetworkAddr"].partition("[")
                bindingPort = "[" + bindingPort
            else:
                binding = strBinding["aNetworkAddr"]
                bindingPort = ""

            if binding.upper().find(iInterface.get_target().upper()) >= 0:
                stringBinding = "ncacn_ip_tcp:" + strBinding["aNetworkAddr"][:-1]
                break
            elif iInterface.is_fqdn() and binding.upper().find(iInterface.get_target().upper().partition(".")[0]) >= 0:
                stringBinding = "ncacn_ip_tcp:%s%s" % (iInterface.get_target(), bindingPort)
    if "stringBinding" not in locals():
        return True, None
    try:
        rpctransport = transport.DCERPCTransportFactory(stringBinding)
        rpctransport.set_connect_timeout(timeout)
        rpctransport.connect()
        rpctransport.disconnect()
    except Exception:
        return False, stringBinding
    else:
        return True, stringBinding


def class_lineage(wmi_object):
    """Class name of a query result followed by its superclasses, nearest first."""
    block = wmi_object.getObject()
    if block.isInstance():
        return [wmi_object.getClassName()]
    # "Updater : __EventConsumer : __IndicationRelated : __SystemClass "
    return [name.strip() for name in block["ClassType"]["CurrentClass"].getClassName().split(" : ")]


class DCOMClient(WMIClient):
    """WMI over DCOM/RPC through impacket, works from any platform."""

    name = "DCOM"
    can_derive_classes = False

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.dcom = None
        self.iWbemLevel1Login = None
        self._services = {}

    def connect(self):
        if not self.logger.logger.isEnabledFor(logging.DEBUG):
            logging.getLogger("impacket").disabled = True

        try:
            self.dcom = DCOMConnection(self.host, self.username, self.password, self.domain, self.lmhash, self.nthash, oxidResolver=True, doKerberos=self.do_kerberos, kdcHost=self.kdc_host, aesKey=self.aes_key)
            iInterface = self.dcom.CoCreateInstanceEx(CLSID_WbemLevel1Login, IID_IWbemLevel1Login)
            flag, stringBinding = dcom_FirewallChecker(iInterface, self.timeout)
        except Exception as e:
            self.disconnect()
            raise wrap_error("DCOM connection", e)

        if not flag:
            self.disconnect()
            raise WMIOperationError("DCOM connection", f'dcom initialization failed with stringbinding: "{stringBinding}", try raising --rpc-timeout')

        self.iWbemLevel1Login = IWbemLevel1Login(iInterface)
        self.logger.debug(f"DCOM connection to {self.host} established (stringbinding: {stringBinding})")

    def disconnect(self):
        for iWbemServices in self._services.values():
            try:
                iWbemServices.RemRelease()
            except Exception as e:
                self.logger.debug(f"RemRelease failed: {e}")
        self._services = {}

        if self.iWbemLevel1Login is not None:
            try:
                self.iWbemLevel1Login.RemRelease()
            except Exception as e:
                self.logger.debug(f"RemRelease failed: {e}")
            self.iWbemLevel1Login = None

        if self.dcom is not None:
            self.dcom.disconnect()
            self.dcom = None

    def services(self, namespace):
        namespace = normalize_namespace(namespace)
        key = namespace.lower()
        if key not in self._services:
            if self.iWbemLevel1Login is None:
                self.connect()
            try:
                self._services[key] = self.iWbemLevel1Login.NTLMLogin(wmi_path(namespace), NULL, NULL)
            except Exception as e:
                raise wrap_error(f"Opening namespace {namespace}", e)
        return self._services[key]

    def checkError(self, banner, call_status):
        if call_status != 0:
            raise WMIOperationError(banner, None, call_status, status_name(call_status))
        self.logger.debug(f"{banner} - OK")

    def query(self, namespace, wql):
        iWbemServices = self.services(namespace)
        self.logger.debug(f"Executing WQL syntax in {namespace}: {wql}")
        try:
            iEnumWbemClassObject = iWbemServices.ExecQuery(wql)
        except Exception as e:
            raise wrap_error(f"Executing WQL {wql}", e)

        records = []
        while True:
            try:
                wmi_results = iEnumWbemClassObject.Next(0xffffffff, 1)[0]
            except Exception as e:
                if str(e).find("S_FALSE") < 0:
                    raise wrap_error(f"Executing WQL {wql}", e)
                break
            record = {k: v["value"] for k, v in wmi_results.getProperties().items()}
            lineage = class_lineage(wmi_results)
            record.setdefault("__CLASS", lineage[0])
            if len(lineage) > 1:
                record.setdefault("__SUPERCLASS", lineage[1])
            records.append(record)

        iEnumWbemClassObject.RemRelease()
        return records

    def delete_instance(self, namespace, path):
        try:
            resp = self.services(namespace).DeleteInstance(path)
        except Exception as e:
            raise wrap_error(f"Removing {path}", e)
        self.checkError(f"Removing {path}", resp.GetCallStatus(0) & 0xffffffff)

    def delete_class(self, namespace, class_name):
        try:
            resp = self.services(namespace).DeleteClass(class_name)
        except Exception as e:
            raise wrap_error(f"Removing class {class_name}", e)
        self.checkError(f"Removing class {class_name}", resp.GetCallStatus(0) & 0xffffffff)
