#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import logging
from sys import exit, platform

from wmiclone.cli import gen_cli_args, get_version
from wmiclone.config import config_log, process_secret
from wmiclone.consumers import clone_consumer, hunt_consumers, remove_consumer
from wmiclone.errors import WMICloneError
from wmiclone.first_run import first_run_setup
from wmiclone.logger import WMICloneAdapter, wmiclone_logger
from wmiclone.protocols.dcom import DCOMClient
from wmiclone.protocols.scripting import ScriptingClient

CLIENTS = {
    "scripting": ScriptingClient,
    "dcom": DCOMClient,
}


def resolve_backend(backend):
    if backend == "auto":
        return "scripting" if platform == "win32" else "dcom"
    return backend


def create_client(args):
    client_class = CLIENTS[resolve_backend(args.backend)]
    logger = WMICloneAdapter(extra={"backend": client_class.name, "host": args.target, "namespace": None})
    return client_class(
        host=args.target,
        username=args.username,
        password=args.password,
        domain=args.domain,
        hashes=args.hash,
        aes_key=args.aes_key,
        do_kerberos=args.kerberos or bool(args.aes_key),
        kdc_host=args.kdc_host,
        timeout=args.rpc_timeout,
        logger=logger,
    )


def run_action(client, args):
    if args.action == "clone":
        info = clone_consumer(client, args.consumer, args.namespace, args.class_name)
        client.logger.highlight(f"{info.namespace}:{info.name} : {info.superclass}")
        for name, details in info.properties.items():
            qualifiers = ", ".join(details.get("qualifiers", {}))
            client.logger.highlight(f"    {name:<24} {qualifiers}")
        return info
    elif args.action == "remove":
        return remove_consumer(client, args.namespace, args.class_name, args.drop_namespace)
    elif args.action == "hunt":
        findings = hunt_consumers(client, args.root)
        if findings:
            client.logger.success(f"{len(findings)} consumer {'entry' if len(findings) == 1 else 'entries'} found outside root\\subscription")
        else:
            client.logger.display("No event consumer classes or registrations found outside root\\subscription")
        return findings


def main(argv=None):
    first_run_setup(wmiclone_logger)
    root_logger = logging.getLogger("root")
    args = gen_cli_args(argv)

    if args.version:
        print(get_version())
        exit(0)

    if args.verbose:
        wmiclone_logger.logger.setLevel(logging.INFO)
        root_logger.setLevel(logging.INFO)
    elif args.debug:
        wmiclone_logger.logger.setLevel(logging.DEBUG)
        root_logger.setLevel(logging.DEBUG)
    else:
        wmiclone_logger.logger.setLevel(logging.ERROR)
        root_logger.setLevel(logging.ERROR)

    if config_log:
        wmiclone_logger.add_file_log()
    if args.log:
        wmiclone_logger.add_file_log(args.log)

    if not args.action:
        wmiclone_logger.fail("No action given, choose one of clone, remove or hunt")
        exit(1)

    secret = args.password or args.hash
    wmiclone_logger.debug(f"Action {args.action} against {args.target} as {args.domain}\\{args.username}:{process_secret(secret)} ({resolve_backend(args.backend)} backend)")

    try:
        client = create_client(args)
    except WMICloneError as e:
        wmiclone_logger.fail(str(e))
        exit(1)

    try:
        with client:
            run_action(client, args)
    except WMICloneError as e:
        client.logger.fail(str(e))
        exit(1)


if __name__ == "__main__":
    main()
