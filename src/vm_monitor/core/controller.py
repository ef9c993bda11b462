"""
VM Controller

Owns the observed Podman machine state. Probes on an interval and on
demand, debounces the transition to RUNNING, issues start/stop and
schedules a follow-up probe after each.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Set

from common.logging_config import LogContext

from ..config import MonitorConfig
from .command_runner import CommandRunner
from .containers import ContainerLister
from .locator import ExecutableLocator
from .scheduler import Scheduler, TimerHandle
from .state import ProbeResult, RuntimeState
from .status_probe import StatusProbe

logger = logging.getLogger(__name__)

START_ARGS = ("machine", "start")
STOP_ARGS = ("machine", "stop")

StateCallback = Callable[[RuntimeState, RuntimeState], None]


class VMController:
    """
    Status/controller engine for the Podman machine.

    `podman machine info` reports "running" as soon as the VM process
    exists, before it has booted. A running reading therefore moves the
    state to STARTING_UP and arms a confirm timer; only when that timer
    fires without an intervening "not running" reading does the state
    become RUNNING. Negative readings apply immediately.

    All state and timer bookkeeping is guarded by one lock. Probes run on
    a single background worker, so results apply in completion order.

    Example:
        with VMController() as controller:
            controller.subscribe(lambda old, new: print(new.tooltip))
            controller.start()
            ...
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        runner: Optional[CommandRunner] = None,
        scheduler: Optional[Scheduler] = None,
        executor=None,
        locator: Optional[ExecutableLocator] = None,
    ):
        self.config = config or MonitorConfig()
        self._runner = runner or CommandRunner(timeout=self.config.command_timeout)
        self._probe = StatusProbe(self._runner)
        self._lister = ContainerLister(self._runner)
        self._scheduler = scheduler or Scheduler()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="podbar-probe"
        )

        self._lock = threading.RLock()
        self._state = RuntimeState.UNKNOWN
        self._confirm_timer: Optional[TimerHandle] = None
        self._confirm_generation = 0
        self._rechecks: Set[TimerHandle] = set()
        self._subscribers: List[StateCallback] = []
        # Subscribers see (last delivered, current), one delivery at a time
        self._notify_lock = threading.Lock()
        self._notified_state = RuntimeState.UNKNOWN
        self._delivering_thread: Optional[threading.Thread] = None

        self._stop_event = threading.Event()
        self._poll_thread: Optional[threading.Thread] = None
        self._closed = False

        if self.config.executable_path:
            self._executable_path = self.config.executable_path
            logger.info(f"Using configured executable: {self._executable_path}")
        else:
            locator = locator or ExecutableLocator(
                self._runner,
                binary_name=self.config.binary_name,
                fallback_path=self.config.fallback_path,
                which_path=self.config.which_path,
            )
            self._executable_path = locator.resolve()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def executable_path(self) -> str:
        return self._executable_path

    @property
    def state(self) -> RuntimeState:
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.state is RuntimeState.RUNNING

    @property
    def confirm_pending(self) -> bool:
        """True while a confirm timer is armed."""
        with self._lock:
            return self._confirm_timer is not None and self._confirm_timer.active

    def subscribe(self, callback: StateCallback) -> Callable[[], None]:
        """
        Register a callback fired with (old_state, new_state) on every change.

        Returns:
            A function that removes the callback
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def list_containers(self) -> List[str]:
        """Names of running containers; empty unless the VM is RUNNING."""
        if not self.is_running:
            return []
        return self._lister.list(self._executable_path)

    # ------------------------------------------------------------------
    # Control side
    # ------------------------------------------------------------------

    def check_now(self) -> Future:
        """
        Probe out of band. Follows the normal transition rules.

        Returns:
            Future resolving to the ProbeResult (None after shutdown)
        """
        with self._lock:
            closed = self._closed
        if not closed:
            try:
                return self._executor.submit(self._probe_and_apply)
            except RuntimeError:
                # Executor shut down between the check and the submit
                pass

        logger.debug("check_now ignored: controller is shut down")
        future: Future = Future()
        future.set_result(None)
        return future

    def start_vm(self) -> None:
        """Launch `machine start` and re-probe after recheck_delay."""
        self._lifecycle(START_ARGS)

    def stop_vm(self) -> None:
        """Launch `machine stop` and re-probe after recheck_delay."""
        self._lifecycle(STOP_ARGS)

    def start(self) -> None:
        """Begin periodic probing: once now, then every poll_interval."""
        with self._lock:
            if self._closed:
                logger.warning("Cannot start a controller that was shut down")
                return
            if self._poll_thread is not None:
                return
            self._poll_thread = threading.Thread(
                target=self._poll_loop, name="podbar-poll", daemon=True
            )
        logger.info(f"Polling every {self.config.poll_interval:g}s")
        self._poll_thread.start()

    def shutdown(self) -> None:
        """Stop polling and cancel every pending timer. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._cancel_confirm_locked()
            rechecks = list(self._rechecks)
            self._rechecks.clear()
            poll_thread = self._poll_thread

        for handle in rechecks:
            handle.cancel()

        self._stop_event.set()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        if poll_thread is not None and poll_thread is not threading.current_thread():
            poll_thread.join(timeout=1.0)
        logger.info("Controller shut down")

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.shutdown()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.check_now().result()
            except CancelledError:
                break
            # Interval counts from completion so a probe never overlaps the next
            if self._stop_event.wait(self.config.poll_interval):
                break

    def _probe_and_apply(self) -> ProbeResult:
        result = self._probe.probe(self._executable_path)
        self._reconcile(result)
        return result

    def _reconcile(self, result: ProbeResult) -> None:
        with self._lock:
            if self._closed:
                return
            old = self._state

            if not result.running:
                self._cancel_confirm_locked()
                self._state = RuntimeState.STOPPED
            elif old is RuntimeState.RUNNING:
                return
            else:
                self._state = RuntimeState.STARTING_UP
                self._arm_confirm_locked()

        self._notify()

    def _arm_confirm_locked(self) -> None:
        self._cancel_confirm_locked()
        generation = self._confirm_generation
        self._confirm_timer = self._scheduler.call_later(
            self.config.confirm_delay, lambda: self._confirm(generation)
        )
        logger.debug(f"Confirm timer armed ({self.config.confirm_delay:g}s)")

    def _cancel_confirm_locked(self) -> None:
        # Bumping the generation also voids a callback that already started
        self._confirm_generation += 1
        if self._confirm_timer is not None:
            self._confirm_timer.cancel()
            self._confirm_timer = None
            logger.debug("Confirm timer cancelled")

    def _confirm(self, generation: int) -> None:
        with self._lock:
            if self._closed or generation != self._confirm_generation:
                return
            self._confirm_timer = None
            old = self._state
            if old is not RuntimeState.STARTING_UP:
                return
            self._state = RuntimeState.RUNNING

        self._notify()

    def _lifecycle(self, args: Sequence[str]) -> None:
        command = " ".join(args)
        with self._lock:
            if self._closed:
                logger.warning(f"Ignoring podman {command}: controller is shut down")
                return

        with LogContext(command=command, executable=self._executable_path):
            logger.info(f"Requested: podman {command}")
            self._runner.launch(self._executable_path, args)

        with self._lock:
            if self._closed:
                return
            handle = self._scheduler.call_later(self.config.recheck_delay, self._recheck)
            self._rechecks.add(handle)

    def _recheck(self) -> None:
        with self._lock:
            self._rechecks = {h for h in self._rechecks if h.active}
        self.check_now()

    def _notify(self) -> None:
        # A change raised from inside a callback is picked up by the loop below
        if self._delivering_thread is threading.current_thread():
            return

        with self._notify_lock:
            self._delivering_thread = threading.current_thread()
            try:
                while True:
                    with self._lock:
                        old = self._notified_state
                        new = self._state
                        if old is new:
                            return
                        self._notified_state = new
                        subscribers = list(self._subscribers)

                    logger.info(f"Podman VM: {old.name} -> {new.name}")

                    for callback in subscribers:
                        try:
                            callback(old, new)
                        except Exception as e:
                            logger.warning(f"State callback error: {e}")
            finally:
                self._delivering_thread = None
