"""Version information for the actionchat assistant service."""

__version__ = "0.3.0"
__version_info__ = tuple(int(i) for i in __version__.split(".") if i.isdigit())

# Populated by the release pipeline
__build_date__ = None
__commit_sha__ = None
