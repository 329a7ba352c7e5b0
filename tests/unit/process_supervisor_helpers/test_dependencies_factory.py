from proxy_supervisor.port_allocator import PortAllocator
from proxy_supervisor.process_killer import kill_processes_by_name
from proxy_supervisor.process_supervisor_helpers import (
    ProcessSupervisorDependenciesFactory,
    find_binary,
    launch_process,
    reset_system_proxies,
)


def test_create_wires_production_collaborators(supervisor_settings):
    supervisor_settings.port_range_start = 9000
    supervisor_settings.port_range_end = 9004

    deps = ProcessSupervisorDependenciesFactory.create(supervisor_settings)

    assert isinstance(deps.port_allocator, PortAllocator)
    assert (deps.port_allocator.first_port, deps.port_allocator.last_port) == (9000, 9004)
    assert deps.kill_existing is kill_processes_by_name
    assert deps.locate_binary is find_binary
    assert deps.launch is launch_process
    assert deps.reset_system_proxies is reset_system_proxies
