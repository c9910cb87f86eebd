from .account_manager import AccountManager
from .bootstrap import BootstrapError, Ready, reconcile

__all__ = ["AccountManager", "BootstrapError", "Ready", "reconcile"]
