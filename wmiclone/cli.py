#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import argparse
import importlib.metadata
from argparse import RawTextHelpFormatter

from wmiclone.config import BACKENDS, default_backend, rpc_timeout
from wmiclone.helpers.logger import highlight
from wmiclone.schema import CONSUMER_SCHEMAS


def get_version():
    try:
        return importlib.metadata.version("wmiclone")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def gen_cli_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="wmiclone",
        description=f"""
    Clone the stock WMI event consumer classes into an arbitrary namespace,
    and hunt for such clones outside root\\subscription.

                                    {highlight('Version', 'red')} : {highlight(get_version())}
""",
        formatter_class=RawTextHelpFormatter,
    )
    parser.add_argument("--verbose", action="store_true", help="enable verbose output")
    parser.add_argument("--debug", action="store_true", help="enable debug level information")
    parser.add_argument("--log", metavar="LOG", help="export result into a custom file")
    parser.add_argument("--version", action="store_true", help="Display wmiclone version")

    std_parser = argparse.ArgumentParser(add_help=False)
    std_parser.add_argument("target", type=str, help="the target IP, hostname or FQDN ('.' or localhost for the local machine)")
    std_parser.add_argument("-u", "--username", metavar="USERNAME", dest="username", default="", help="username to authenticate with")
    std_parser.add_argument("-p", "--password", metavar="PASSWORD", dest="password", default="", help="password to authenticate with")
    std_parser.add_argument("-H", "--hash", metavar="HASH", dest="hash", default="", help="NTLM hash, LM:NT or NT")
    std_parser.add_argument("-d", "--domain", metavar="DOMAIN", dest="domain", default="", help="domain to authenticate to")
    std_parser.add_argument("-k", "--kerberos", action="store_true", help="Use Kerberos authentication")
    std_parser.add_argument("--aes-key", metavar="AESKEY", default="", help="AES key to use for Kerberos Authentication (128 or 256 bits)")
    std_parser.add_argument("--kdc-host", metavar="KDCHOST", help="FQDN of the domain controller. If omitted it will use the domain part (FQDN) specified in the target parameter")
    std_parser.add_argument(
        "--backend",
        choices=BACKENDS,
        default=default_backend,
        help="WMI client to use (default: %(default)s). "
        "[scripting]: Windows WMI scripting API through pywin32, required for clone. "
        "[dcom]: impacket DCOM, works from any platform for hunt and remove. "
        "[auto]: scripting on Windows, dcom elsewhere.",
    )
    std_parser.add_argument("--rpc-timeout", help="RPC/DCOM(WMI) connection timeout, default is %(default)s secondes", type=int, default=rpc_timeout)

    subparsers = parser.add_subparsers(title="actions", dest="action", description="available actions")

    clone_parser = subparsers.add_parser("clone", help="clone a stock event consumer class into a namespace", parents=[std_parser])
    clone_parser.add_argument("-n", "--namespace", required=True, help="target namespace, created if missing (e.g. root\\evil)")
    clone_parser.add_argument("-c", "--class-name", dest="class_name", default=None, help="name of the cloned class (default: the stock class name)")
    clone_parser.add_argument("--consumer", required=True, choices=sorted(CONSUMER_SCHEMAS), help="stock consumer class to clone")

    remove_parser = subparsers.add_parser("remove", help="remove a cloned consumer class with its provider and registration", parents=[std_parser])
    remove_parser.add_argument("-n", "--namespace", required=True, help="namespace holding the clone")
    remove_parser.add_argument("-c", "--class-name", dest="class_name", required=True, help="name of the cloned class")
    remove_parser.add_argument("--drop-namespace", action="store_true", help="also delete the namespace once it is empty")

    hunt_parser = subparsers.add_parser("hunt", help="find event consumer classes and registrations outside root\\subscription", parents=[std_parser])
    hunt_parser.add_argument("--root", default="root", help="namespace to start walking from (default: %(default)s)")

    return parser.parse_args(argv)
