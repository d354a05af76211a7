"""Filing lifecycle service and HTTP routers"""

from .service import FilingLifecycleManager, FilingDetails

__all__ = ["FilingLifecycleManager", "FilingDetails"]
