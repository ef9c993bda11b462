#!/usr/bin/env python3
"""
PodBar - Command Line Interface

Headless front end for the VM status engine.
"""

import argparse
import logging
import sys
import threading
import time
from datetime import datetime
from pathlib import Path

from common.exceptions import ConfigError
from common.logging_config import setup_logging

from .config import MonitorConfig
from .core.command_runner import CommandRunner
from .core.containers import ContainerLister
from .core.controller import VMController
from .core.state import RuntimeState

logger = logging.getLogger(__name__)


def _build_controller(args) -> VMController:
    return VMController(config=args.config_obj)


def _describe(result) -> str:
    if result.machine_state is not None:
        return result.machine_state
    if result.error is not None:
        return f"unknown ({result.error.value})"
    return "unknown"


def cmd_status(args):
    """Probe once and print the machine state."""
    with _build_controller(args) as controller:
        result = controller.check_now().result()

    icon = "✅" if result.running else "❌"
    print(f"{icon} Podman VM: {_describe(result)}")
    print(f"   Executable: {controller.executable_path}")
    return 0 if result.running else 1


def cmd_containers(args):
    """List running containers."""
    with _build_controller(args) as controller:
        result = controller.check_now().result()
        if not result.running:
            print("Podman VM is not running")
            return 1
        lister = ContainerLister(CommandRunner(timeout=controller.config.command_timeout))
        names = lister.list(controller.executable_path)

    if not names:
        print("No container in execution")
        return 0

    print("Container in execution:")
    for name in names:
        print(f"  • {name}")
    return 0


def _lifecycle(args, action: str, target: RuntimeState):
    reached = threading.Event()

    with _build_controller(args) as controller:
        controller.subscribe(
            lambda old, new: reached.set() if new is target else None
        )

        if action == "start":
            controller.start_vm()
        else:
            controller.stop_vm()
        print(f"Requested podman machine {action}")

        if args.wait is None:
            time.sleep(controller.config.recheck_delay)
            result = controller.check_now().result()
            print(f"Podman VM: {_describe(result)}")
            return 0

        controller.start()
        if reached.wait(timeout=args.wait):
            print(f"Podman VM: {target.value}")
            return 0

        print(f"⚠️  Podman VM did not reach '{target.value}' within {args.wait:g}s "
              f"(currently {controller.state.value})")
        return 1


def cmd_start(args):
    """Start the Podman machine."""
    return _lifecycle(args, "start", RuntimeState.RUNNING)


def cmd_stop(args):
    """Stop the Podman machine."""
    return _lifecycle(args, "stop", RuntimeState.STOPPED)


def cmd_watch(args):
    """Print every state change until interrupted."""
    controller = _build_controller(args)

    def on_change(old, new):
        stamp = datetime.now().strftime("%H:%M:%S")
        print(f"[{stamp}] {new.tooltip}", flush=True)
        if new is RuntimeState.RUNNING:
            names = controller.list_containers()
            if names:
                for name in names:
                    print(f"           • {name}", flush=True)
            else:
                print("           No container in execution", flush=True)

    controller.subscribe(on_change)
    controller.start()

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print()
    finally:
        controller.shutdown()
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="podbar",
        description="Podman machine status monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  podbar status            # Is the Podman VM running?
  podbar containers        # Running containers
  podbar start --wait 60   # Start the VM and wait until it is up
  podbar watch             # Follow state changes
        """
    )
    parser.add_argument("-c", "--config", type=Path, default=None,
                        help="Config file (default: ~/.config/podbar/config.json)")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More logging (-vv for debug)")
    parser.add_argument("--log-file", type=Path, default=None,
                        help="Also log to this file")
    parser.add_argument("--json-logs", action="store_true",
                        help="Write the log file as JSON lines")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    status_parser = subparsers.add_parser("status", help="Probe the VM once")
    status_parser.set_defaults(func=cmd_status)

    containers_parser = subparsers.add_parser("containers", help="List running containers")
    containers_parser.set_defaults(func=cmd_containers)

    for name, func, help_text in (
        ("start", cmd_start, "Start the Podman VM"),
        ("stop", cmd_stop, "Stop the Podman VM"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("-w", "--wait", type=float, default=None, metavar="SECONDS",
                         help="Wait up to SECONDS for the change to be confirmed")
        sub.set_defaults(func=func)

    watch_parser = subparsers.add_parser("watch", help="Follow state changes")
    watch_parser.set_defaults(func=cmd_watch)

    args = parser.parse_args(argv)

    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    setup_logging(level=level, log_file=args.log_file, json_logs=args.json_logs)

    try:
        args.config_obj = MonitorConfig.load(args.config)
    except ConfigError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2

    logger.debug(f"Config: {args.config_obj.to_dict()}")

    if args.command is None:
        # Default to status
        return cmd_status(args)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
