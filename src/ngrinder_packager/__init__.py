"""
nGrinder Packager - Distributable Agent and Monitor Package Builder.

Builds versioned agent and monitor archives for an nGrinder controller,
caches them in the controller's download directory and evicts stale ones.
"""

__version__ = "3.5.0"

# The service layer is not exported by default
# Import explicitly: from ngrinder_packager.packages import PackageService

__all__ = []
