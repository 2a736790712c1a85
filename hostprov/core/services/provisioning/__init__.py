"""
Driver provisioning service — package re-exports.

Layers (data → domain → detection → execution → orchestration)::

    from hostprov.core.services.provisioning import DriverProvisioningEngine
"""

# ── L1: Domain ──
from hostprov.core.services.provisioning.domain.distro import (  # noqa: F401
    resolve_distro_family,
)
from hostprov.core.services.provisioning.domain.plan import (  # noqa: F401
    build_repo_spec,
    check_cuda_driver_compat,
    kernel_header_packages,
    select_plan,
)

# ── L3: Detection ──
from hostprov.core.services.provisioning.detection.gpu import detect_gpu  # noqa: F401
from hostprov.core.services.provisioning.detection.host import (  # noqa: F401
    detect_architecture,
    detect_package_manager,
    probe_host,
    require_linux,
)

# ── L4: Execution ──
from hostprov.core.services.provisioning.execution.workspace import RunWorkspace  # noqa: F401

# ── L5: Orchestration ──
from hostprov.core.services.provisioning.orchestration.engine import (  # noqa: F401
    DriverProvisioningEngine,
)
