from __future__ import annotations

"""Dependency factory for ProcessSupervisor."""


from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional, Sequence

if TYPE_CHECKING:
    from ..port_allocator import PortAllocator
    from ..settings import SupervisorSettings


@dataclass
class ProcessSupervisorDependencies:
    """Container for the OS-facing collaborators of ProcessSupervisor."""

    port_allocator: "PortAllocator"
    kill_existing: Callable[[str], Any]
    locate_binary: Callable[[Iterable[str]], Optional[str]]
    launch: Callable[[str, Sequence[str]], Any]
    reset_system_proxies: Callable[[], List[str]]


class ProcessSupervisorDependenciesFactory:
    """Factory for creating the production ProcessSupervisor dependencies."""

    @staticmethod
    def create(settings: "SupervisorSettings") -> ProcessSupervisorDependencies:
        from ..port_allocator import PortAllocator
        from ..process_killer import kill_processes_by_name
        from .binary_locator import find_binary
        from .launcher import launch_process
        from .proxy_cleanup import reset_system_proxies

        return ProcessSupervisorDependencies(
            port_allocator=PortAllocator(settings.port_range),
            kill_existing=kill_processes_by_name,
            locate_binary=find_binary,
            launch=launch_process,
            reset_system_proxies=reset_system_proxies,
        )
