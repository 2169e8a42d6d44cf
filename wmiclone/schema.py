#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
# Class layouts of the stock event consumers, as declared in
# %SystemRoot%\System32\wbem\scrcons.mof (ActiveScriptEventConsumer) and
# %SystemRoot%\System32\wbem\wbemcons.mof (CommandLineEventConsumer).

from collections import namedtuple

from impacket.dcerpc.v5.dcom.wmi import CIM_TYPE_ENUM

from wmiclone.errors import WMICloneError

EVENT_CONSUMER_CLASS = "__EventConsumer"

CIM_STRING = CIM_TYPE_ENUM.CIM_TYPE_STRING.value
CIM_BOOLEAN = CIM_TYPE_ENUM.CIM_TYPE_BOOLEAN.value
CIM_SINT32 = CIM_TYPE_ENUM.CIM_TYPE_SINT32.value
CIM_UINT32 = CIM_TYPE_ENUM.CIM_TYPE_UINT32.value

QualifierSpec = namedtuple("QualifierSpec", ["name", "value", "to_subclass", "to_instance", "overridable"])
PropertySpec = namedtuple("PropertySpec", ["name", "cim_type", "is_array", "default", "qualifiers"])
ConsumerSchema = namedtuple(
    "ConsumerSchema",
    [
        "kind",
        "base_class",
        "superclass",
        "class_qualifiers",
        "properties",
        "provider_clsid",
        "hosting_model",
        "per_user_initialization",
    ],
)


def qualifier(name, value=True, to_subclass=True, to_instance=True, overridable=True):
    return QualifierSpec(name, value, to_subclass, to_instance, overridable)


KEY = qualifier("key", overridable=False)
WRITE = qualifier("write")
NOT_NULL = qualifier("not_null")
TEMPLATE = qualifier("template")


def prop(name, cim_type, *qualifiers, default=None, is_array=False):
    return PropertySpec(name, cim_type, is_array, default, tuple(qualifiers))


ACTIVE_SCRIPT = ConsumerSchema(
    kind="ActiveScript",
    base_class="ActiveScriptEventConsumer",
    superclass=EVENT_CONSUMER_CLASS,
    class_qualifiers=(
        qualifier("Locale", 1033),
        qualifier("UUID", "{266C72D4-62E8-11D1-AD89-00C04FD8FDFF}"),
    ),
    properties=(
        prop("Name", CIM_STRING, KEY),
        prop("ScriptingEngine", CIM_STRING, NOT_NULL, WRITE),
        prop("ScriptText", CIM_STRING, WRITE),
        prop("ScriptFileName", CIM_STRING, WRITE),
        prop("KillTimeout", CIM_UINT32, WRITE, default=0),
    ),
    provider_clsid="{266c72e7-62e8-11d1-ad89-00c04fd8fdff}",
    hosting_model="SelfHost",
    per_user_initialization=True,
)

COMMAND_LINE = ConsumerSchema(
    kind="CommandLine",
    base_class="CommandLineEventConsumer",
    superclass=EVENT_CONSUMER_CLASS,
    class_qualifiers=(
        qualifier("Locale", 1033),
        qualifier("UUID", "{266C72E4-62E8-11D1-AD89-00C04FD8FDFF}"),
    ),
    properties=(
        prop("Name", CIM_STRING, KEY),
        prop("ExecutablePath", CIM_STRING, WRITE),
        prop("CommandLineTemplate", CIM_STRING, TEMPLATE, WRITE),
        prop("UseDefaultErrorMode", CIM_BOOLEAN, WRITE, default=False),
        prop("CreateNewConsole", CIM_BOOLEAN, WRITE, default=False),
        prop("CreateNewProcessGroup", CIM_BOOLEAN, WRITE, default=False),
        prop("CreateSeparateWowVdm", CIM_BOOLEAN, WRITE, default=False),
        prop("CreateSharedWowVdm", CIM_BOOLEAN, WRITE, default=False),
        prop("Priority", CIM_SINT32, WRITE, default=32),
        prop("WorkingDirectory", CIM_STRING, WRITE),
        prop("DesktopName", CIM_STRING, WRITE),
        prop("WindowTitle", CIM_STRING, TEMPLATE, WRITE),
        prop("XCoordinate", CIM_UINT32, WRITE),
        prop("YCoordinate", CIM_UINT32, WRITE),
        prop("XSize", CIM_UINT32, WRITE),
        prop("YSize", CIM_UINT32, WRITE),
        prop("XNumCharacters", CIM_UINT32, WRITE),
        prop("YNumCharacters", CIM_UINT32, WRITE),
        prop("FillAttribute", CIM_UINT32, WRITE),
        prop("ShowWindowCommand", CIM_UINT32, WRITE),
        prop("ForceOnFeedback", CIM_BOOLEAN, WRITE, default=False),
        prop("ForceOffFeedback", CIM_BOOLEAN, WRITE, default=False),
        prop("RunInteractively", CIM_BOOLEAN, WRITE, default=False),
        prop("KillTimeout", CIM_UINT32, WRITE, default=0),
    ),
    provider_clsid="{266c72e5-62e8-11d1-ad89-00c04fd8fdff}",
    hosting_model="LocalSystemHost",
    per_user_initialization=False,
)

CONSUMER_SCHEMAS = {
    ACTIVE_SCRIPT.kind: ACTIVE_SCRIPT,
    COMMAND_LINE.kind: COMMAND_LINE,
}


def get_schema(kind):
    """Look up a consumer layout by short kind or by its stock class name."""
    if isinstance(kind, ConsumerSchema):
        return kind
    wanted = str(kind).lower()
    for schema in CONSUMER_SCHEMAS.values():
        if wanted in (schema.kind.lower(), schema.base_class.lower()):
            return schema
    raise WMICloneError(f"Unknown consumer kind: {kind} (choose from {', '.join(CONSUMER_SCHEMAS)})")


def provider_values(schema, class_name):
    """Property values of the __Win32Provider instance serving a clone."""
    values = {
        "Name": class_name,
        "Clsid": schema.provider_clsid,
        "HostingModel": schema.hosting_model,
    }
    if schema.per_user_initialization:
        values["PerUserInitialization"] = True
    return values


def provider_path(class_name):
    return f'__Win32Provider.Name="{class_name}"'


def registration_values(class_name):
    """Property values of the __EventConsumerProviderRegistration binding a clone to its provider."""
    return {
        "Provider": provider_path(class_name),
        "ConsumerClassNames": [class_name],
    }


def registration_path(class_name):
    return f'__EventConsumerProviderRegistration.Provider="__Win32Provider.Name=\\"{class_name}\\""'
