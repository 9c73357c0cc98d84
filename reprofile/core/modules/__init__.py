"""
File-backed module system: manifests, discovery and the enabled-module registry.

WHY THIS PACKAGE EXISTS:
The profile-enable core needs a host to ask which modules exist and which are
enabled, and to perform the enable action. This package is that host for a site
directory, and never imports module code.
"""

from reprofile.core.modules.manager import ModuleManager

__all__ = ["ModuleManager"]
