"""
acceleration.py — Accelerated Kernel Dispatcher
================================================

Routes every statistics/scoring call either to the accelerated kernel
(native_kernel, numpy) or to the portable kernel (stat_kernel).

Lifecycle:
    1. The first call (or preload()) starts a one-shot background import
       of config.ACCELERATION_MODULE.
    2. Until that import finishes, or if it fails, calls are served by the
       portable kernel. Callers never wait on the load.
    3. A successful load is cached for the lifetime of the process.
       A failed load logs one warning and is never retried.

Array arguments are copied into a scratch buffer sized exactly to the
call, passed to the kernel with their length, and released afterwards,
even if the kernel raises.
"""

import importlib
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

import numpy as np

from . import config, stat_kernel

logger = logging.getLogger("analytics.acceleration")

# Functions the accelerated module must export.
KERNEL_FUNCTIONS = ("trend", "variance", "environment_score", "feeding_adjustment")


class AccelerationDispatcher:
    """
    Strategy selector between the accelerated and portable kernels.

    Attributes:
        module_name (str): Import path of the accelerated kernel.
        enabled (bool): When False the load is never attempted.
        _module: Loaded kernel module, or None.
        _future (Future | None): One-shot load; resolves to the module or None.
    """

    def __init__(self, module_name: str = None, enabled: bool = None):
        self.module_name = module_name or config.ACCELERATION_MODULE
        self.enabled = config.ACCELERATION_ENABLED if enabled is None else enabled
        self._module = None
        self._future = None
        self._init_lock = threading.Lock()
        self._outstanding_buffers = 0
        self._buffer_lock = threading.Lock()

    # ── Lifecycle ─────────────────────────────────────────────────

    def start_loading(self) -> Future:
        """Start the background load once; later calls get the same future."""
        if self._future is not None:
            return self._future

        with self._init_lock:
            if self._future is None:
                if not self.enabled:
                    future = Future()
                    future.set_result(None)
                    logger.info("Acceleration disabled, using portable kernel")
                    self._future = future
                else:
                    executor = ThreadPoolExecutor(
                        max_workers=1, thread_name_prefix="analytics-accel"
                    )
                    self._future = executor.submit(self._load)
                    executor.shutdown(wait=False)
        return self._future

    def _load(self):
        try:
            module = importlib.import_module(self.module_name)
            missing = [name for name in KERNEL_FUNCTIONS if not hasattr(module, name)]
            if missing:
                raise AttributeError(
                    f"{self.module_name} does not export {', '.join(missing)}"
                )
        except Exception as e:
            logger.warning(
                f"Accelerated kernel '{self.module_name}' failed to load, "
                f"using portable kernel: {e}"
            )
            return None

        self._module = module
        logger.info(f"Accelerated kernel loaded from {self.module_name}")
        return module

    def preload(self, timeout: float = None) -> bool:
        """
        Start (or join) the load and report whether acceleration is available.

        Safe to call repeatedly and from several threads: all callers share
        one load and get the same answer.

        Args:
            timeout: Seconds to wait for the load. None waits until done.
                If the load is still running when it expires, the answer
                is False and the load carries on in the background.
        """
        try:
            return self.start_loading().result(timeout) is not None
        except FutureTimeoutError:
            logger.debug(f"Accelerated kernel still loading after {timeout}s")
            return self.is_ready

    @property
    def is_ready(self) -> bool:
        """True once the accelerated kernel is loaded."""
        return self._module is not None

    @property
    def outstanding_buffers(self) -> int:
        """Scratch buffers currently allocated (0 between calls)."""
        return self._outstanding_buffers

    def _kernel(self):
        self.start_loading()
        return self._module

    def _with_buffer(self, values, fn):
        n = len(values)
        scratch = np.empty(n, dtype=np.float64)
        with self._buffer_lock:
            self._outstanding_buffers += 1
        try:
            scratch[:] = values
            return fn(scratch, n)
        finally:
            del scratch
            with self._buffer_lock:
                self._outstanding_buffers -= 1

    # ── Kernel operations ─────────────────────────────────────────

    def trend(self, values) -> float:
        """Least-squares slope of values against sample index."""
        kernel = self._kernel()
        if kernel is None:
            return stat_kernel.trend(values)
        return self._with_buffer(values, kernel.trend)

    def variance(self, values) -> float:
        """Population variance of values."""
        kernel = self._kernel()
        if kernel is None:
            return stat_kernel.variance(values)
        return self._with_buffer(values, kernel.variance)

    def environment_score(self, dissolved_oxygen, ph, turbidity, ammonia,
                          temperature, activity, thresholds) -> float:
        """Environment score from the 13-entry threshold vector."""
        kernel = self._kernel()
        if kernel is None:
            return stat_kernel.environment_score(
                dissolved_oxygen, ph, turbidity, ammonia,
                temperature, activity, thresholds,
            )
        return self._with_buffer(
            thresholds,
            lambda buf, n: kernel.environment_score(
                dissolved_oxygen, ph, turbidity, ammonia,
                temperature, activity, buf, n,
            ),
        )

    def feeding_adjustment(self, dissolved_oxygen, turbidity, ammonia,
                           activity, temperature, env_score) -> float:
        """Feed-rate adjustment in percent."""
        kernel = self._kernel()
        if kernel is None:
            return stat_kernel.feeding_adjustment(
                dissolved_oxygen, turbidity, ammonia, activity, temperature, env_score,
            )
        return kernel.feeding_adjustment(
            dissolved_oxygen, turbidity, ammonia, activity, temperature, env_score,
        )


# Process-wide dispatcher (created on first use)
_dispatcher = None
_dispatcher_lock = threading.Lock()


def get_dispatcher() -> AccelerationDispatcher:
    """Get or create the process-wide dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        with _dispatcher_lock:
            if _dispatcher is None:
                _dispatcher = AccelerationDispatcher()
    return _dispatcher


def preload_acceleration(timeout: float = None) -> bool:
    """Warm up the process-wide dispatcher; returns whether it is accelerated."""
    return get_dispatcher().preload(timeout)
