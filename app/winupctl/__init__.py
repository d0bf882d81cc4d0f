"""winupctl - Windows software update automation.

Drives Winget, Chocolatey and Microsoft Store upgrades with a version-change
cache, priority ordering, persisted history and post-update validation.
"""

__version__ = "0.4.0"
