"""
Process Supervisor

Owns the lifecycle of the external proxy binary: launch on a free port,
stream its output into a :class:`LogAggregator`, restart it after unexpected
exits (bounded by :class:`CrashPolicy`), and clean up the system proxy
settings on teardown.

All control operations run on one asyncio event loop. The process handle is
additionally guarded by a lock because the exit watcher thread and
``stop_blocking`` (called from shutdown code) read it outside the loop.

Usage:
    supervisor = ProcessSupervisor()
    port = await supervisor.start(dns_address="1.1.1.1:53")
    ...
    supervisor.stop()
"""

from __future__ import annotations

import asyncio
import atexit
import logging
import subprocess
import threading
import time
from typing import Any, Callable, List, Optional

import psutil

from .async_helpers import safely_schedule_coroutine
from .errors import (
    AlreadyRunningError,
    BinaryNotFoundError,
    CrashLoopExceededError,
    ProxySupervisorError,
    StartFailedError,
)
from .log_aggregator import LogAggregator, LogEntry
from .process_supervisor_helpers import (
    CrashPolicy,
    CrashRecord,
    OutputPump,
    ProcessSupervisorDependencies,
    ProcessSupervisorDependenciesFactory,
    RestartScheduler,
    SupervisorState,
    TerminationWatcher,
    build_arguments,
    start_output_pumps,
)
from .settings import SupervisorSettings

logger = logging.getLogger(__name__)

StateListener = Callable[[SupervisorState], None]

_TERMINATE_ERRORS = (ProcessLookupError, psutil.NoSuchProcess, OSError)
_WAIT_TIMEOUT_ERRORS = (subprocess.TimeoutExpired, psutil.TimeoutExpired)


class ProcessSupervisor:
    """Start, stop and auto-recover a single proxy child process."""

    def __init__(
        self,
        settings: Optional[SupervisorSettings] = None,
        *,
        log_aggregator: Optional[LogAggregator] = None,
        dependencies: Optional[ProcessSupervisorDependencies] = None,
        clock: Callable[[], float] = time.monotonic,
        register_exit_hook: bool = True,
    ) -> None:
        self.settings = settings or SupervisorSettings()
        self.log_aggregator = log_aggregator or LogAggregator()
        self._deps = dependencies or ProcessSupervisorDependenciesFactory.create(self.settings)
        self._clock = clock

        self._process_lock = threading.Lock()
        self._process: Any = None
        self._pumps: List[OutputPump] = []

        self._state = SupervisorState.STOPPED
        self._state_listeners: List[StateListener] = []
        self._user_initiated_stop = False
        # Bumped by every start and stop; a start that wakes up to a newer value is abandoned
        self._start_generation = 0
        self._dns_address: Optional[str] = None
        self._current_port: Optional[int] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        self.crash_policy = CrashPolicy(
            max_crash_count=self.settings.max_crash_count,
            reset_window_seconds=self.settings.crash_reset_window_seconds,
        )
        self._restart_scheduler = RestartScheduler()
        self._stability_handle: Optional[asyncio.TimerHandle] = None
        self._torn_down = False

        if register_exit_hook:
            atexit.register(self.teardown)

    # ------------------------------------------------------------------ state

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is SupervisorState.RUNNING

    @property
    def current_port(self) -> Optional[int]:
        return self._current_port

    @property
    def dns_address(self) -> Optional[str]:
        return self._dns_address

    @property
    def crash_record(self) -> CrashRecord:
        return self.crash_policy.record

    @property
    def restart_pending(self) -> bool:
        return self._restart_scheduler.pending

    @property
    def process(self) -> Any:
        with self._process_lock:
            return self._process

    @property
    def logs(self) -> List[LogEntry]:
        return self.log_aggregator.entries

    def add_state_listener(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    def add_log(self, message: str) -> None:
        self.log_aggregator.add_log(message)

    def clear_logs(self) -> None:
        self.log_aggregator.clear()

    def ensure_not_crash_looping(self) -> None:
        """
        Raise when automatic recovery has given up.

        Raises:
            CrashLoopExceededError: If the supervisor is in its terminal crash state
        """
        if self._state is SupervisorState.CRASH_LOOP_EXCEEDED:
            raise CrashLoopExceededError(self.crash_policy.record.count)

    def _set_state(self, new_state: SupervisorState) -> None:
        if new_state is self._state:
            return
        logger.debug("Supervisor state %s -> %s", self._state.value, new_state.value)
        self._state = new_state
        for listener in list(self._state_listeners):
            try:
                listener(new_state)
            except (RuntimeError, ValueError, TypeError):  # Listener failure must not block transitions  # policy_guard: allow-silent-handler
                logger.exception("State listener %r failed", listener)

    # ------------------------------------------------------------------ start

    async def start(self, dns_address: Optional[str] = None) -> int:
        """
        Launch the proxy and return the port it listens on.

        Raises:
            AlreadyRunningError: If a process is starting or running
            BinaryNotFoundError: If no candidate install path exists
            NoPortsAvailableError: If every port in range is taken
            StartFailedError: If the OS refuses to launch the binary
        """
        if self._state in (SupervisorState.STARTING, SupervisorState.RUNNING):
            raise AlreadyRunningError()

        if self._state is SupervisorState.CRASH_LOOP_EXCEEDED:
            self.crash_policy.clear()
        self._loop = asyncio.get_running_loop()
        self.log_aggregator.bind_loop(self._loop)
        self._user_initiated_stop = False
        self._start_generation += 1
        generation = self._start_generation
        self._dns_address = dns_address
        self._restart_scheduler.cancel()
        self._set_state(SupervisorState.STARTING)

        try:
            port = await self._launch(dns_address, generation)
        except BaseException:
            # Covers cancellation too; a newer start owns the state when superseded
            if generation == self._start_generation and self._state is SupervisorState.STARTING:
                self._set_state(SupervisorState.STOPPED)
            raise

        self._set_state(SupervisorState.RUNNING)
        self.add_log(f"Started {self.settings.binary_name} on port {port}")
        logger.info("Started %s on port %s (dns=%s)", self.settings.binary_name, port, dns_address or "default")
        self._schedule_stability_reset()
        return port

    async def _launch(self, dns_address: Optional[str], generation: int) -> int:
        settings = self.settings
        await asyncio.to_thread(self._deps.kill_existing, settings.binary_name)
        await asyncio.sleep(settings.settle_delay_seconds)
        if generation != self._start_generation:
            raise StartFailedError("start superseded by a later stop or start request")

        candidates = settings.candidate_binary_paths
        binary_path = self._deps.locate_binary(candidates)
        if binary_path is None:
            raise BinaryNotFoundError(settings.binary_name, candidates)

        port = self._deps.port_allocator.find_available_port()
        arguments = build_arguments(settings.listen_host, port, settings.log_level, dns_address)
        try:
            process = self._deps.launch(binary_path, arguments)
        except OSError as exc:
            raise StartFailedError(str(exc)) from exc

        with self._process_lock:
            self._process = process
        self._current_port = port
        self._pumps = start_output_pumps(process, self.log_aggregator.append_chunk)
        TerminationWatcher(process, self._on_process_exit).start()
        return port

    # ------------------------------------------------------------------ stop

    def stop(self) -> None:
        """Terminate the proxy without waiting; suppresses auto-restart."""
        process = self._begin_user_stop()
        if process is not None:
            self._terminate(process)
        self._finish_stop()

    def stop_blocking(self, timeout: Optional[float] = None) -> None:
        """Terminate the proxy and wait up to ``timeout`` seconds for it to exit."""
        wait_seconds = self.settings.stop_timeout_seconds if timeout is None else timeout
        process = self._begin_user_stop()
        if process is not None:
            self._terminate(process)
            try:
                process.wait(timeout=wait_seconds)
            except _WAIT_TIMEOUT_ERRORS:  # Shutdown continues regardless  # policy_guard: allow-silent-handler
                logger.warning("Proxy did not exit within %.1fs of terminate", wait_seconds)
        self._finish_stop()

    def _begin_user_stop(self) -> Any:
        self._user_initiated_stop = True
        self._start_generation += 1
        self._restart_scheduler.cancel()
        self._cancel_stability_reset()
        with self._process_lock:
            process = self._process
            self._process = None
        if process is None or process.poll() is not None:
            return None
        self._set_state(SupervisorState.STOPPING)
        return process

    def _finish_stop(self) -> None:
        self._detach_outputs()
        self._set_state(SupervisorState.STOPPED)

    def _terminate(self, process: Any) -> None:
        try:
            process.terminate()
        except _TERMINATE_ERRORS as exc:  # Already gone  # policy_guard: allow-silent-handler
            logger.debug("Terminate failed for pid %s: %s", getattr(process, "pid", "?"), exc)

    def _detach_outputs(self) -> None:
        pumps, self._pumps = self._pumps, []
        for pump in pumps:
            pump.detach()

    # ------------------------------------------------------------------ exit handling

    def _on_process_exit(self, process: Any, exit_code: Optional[int]) -> None:
        """Called from the watcher thread; hops onto the control loop."""
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("Proxy exited with %s after the event loop closed", exit_code)
            return
        try:
            loop.call_soon_threadsafe(self._handle_termination, process, exit_code)
        except RuntimeError:  # Loop shut down concurrently  # policy_guard: allow-silent-handler
            logger.debug("Proxy exited with %s while the event loop was closing", exit_code)

    def _handle_termination(self, process: Any, exit_code: Optional[int]) -> None:
        self.add_log(f"Process terminated (exit code: {exit_code})")
        with self._process_lock:
            is_current = self._process is process
            if is_current:
                self._process = None
        if not is_current:
            # Handle already released by stop() or replaced by a newer start
            return

        logger.info("Proxy pid %s exited with %s", getattr(process, "pid", "?"), exit_code)
        self._cancel_stability_reset()
        # Pumps drain to EOF on their own so trailing output still reaches the log
        self._pumps = []
        self._apply_crash_policy(exit_code)

    def _apply_crash_policy(self, exit_code: Optional[int]) -> None:
        if self._user_initiated_stop or exit_code == 0:
            self._set_state(SupervisorState.STOPPED)
            return

        decision = self.crash_policy.register_crash(self._clock())
        if not decision.should_restart:
            self.add_log("Maximum restart attempts reached. Please check logs.")
            logger.error("Proxy crashed %d times; giving up on automatic restarts", decision.attempt)
            self._set_state(SupervisorState.CRASH_LOOP_EXCEEDED)
            return

        self.add_log(f"Unexpected termination. Attempting restart ({decision.attempt}/{decision.max_attempts})...")
        logger.warning("Unexpected proxy exit (%s); restart %d/%d", exit_code, decision.attempt, decision.max_attempts)
        self._set_state(SupervisorState.STOPPED)
        if self._loop is None:
            return
        self._restart_scheduler.schedule(self._loop, self.settings.restart_delay_seconds, self._on_restart_timer)

    def _on_restart_timer(self) -> None:
        # Re-check at fire time: a user stop or manual start may have happened since scheduling
        if self._user_initiated_stop:
            logger.debug("Skipping scheduled restart after user stop")
            return
        if self._state is not SupervisorState.STOPPED:
            logger.debug("Skipping scheduled restart; supervisor is %s", self._state.value)
            return
        safely_schedule_coroutine(self._restart, loop=self._loop)

    async def _restart(self) -> None:
        if self._user_initiated_stop or self._state is not SupervisorState.STOPPED:
            return
        try:
            await self.start(self._dns_address)
        except AlreadyRunningError:  # Caller started it first  # policy_guard: allow-silent-handler
            logger.debug("Scheduled restart found the proxy already running")
        except ProxySupervisorError as exc:
            if self._user_initiated_stop or self._state is not SupervisorState.STOPPED:
                logger.debug("Scheduled restart abandoned: %s", exc)
                return
            self.add_log(f"Restart failed: {exc}")
            logger.warning("Automatic restart failed: %s", exc)
            self._apply_crash_policy(None)

    # ------------------------------------------------------------------ stability

    def _schedule_stability_reset(self) -> None:
        self._cancel_stability_reset()
        if self._loop is None:
            return
        process = self.process
        self._stability_handle = self._loop.call_later(
            self.settings.stable_run_seconds,
            self._reset_crash_count_if_stable,
            process,
        )

    def _cancel_stability_reset(self) -> None:
        if self._stability_handle is not None:
            self._stability_handle.cancel()
            self._stability_handle = None

    def _reset_crash_count_if_stable(self, process: Any) -> None:
        self._stability_handle = None
        if self.is_running and self.process is process:
            self.crash_policy.reset()

    # ------------------------------------------------------------------ teardown

    def teardown(self) -> None:
        """
        Final cleanup at process exit: kill the proxy and reset system proxies.

        Safe to call more than once; never raises.
        """
        if self._torn_down:
            return
        self._torn_down = True
        self._user_initiated_stop = True
        self._start_generation += 1
        self._restart_scheduler.cancel()
        self._cancel_stability_reset()
        with self._process_lock:
            process = self._process
            self._process = None
        if process is not None:
            self._terminate(process)
        self._detach_outputs()
        self._state = SupervisorState.STOPPED
        try:
            self._deps.reset_system_proxies()
        except (OSError, RuntimeError, ValueError):  # Teardown must not raise  # policy_guard: allow-silent-handler
            logger.exception("System proxy cleanup failed")
        atexit.unregister(self.teardown)


__all__ = ["ProcessSupervisor", "SupervisorState"]
