"""
photos-backup-cli: a resumable Google Photos library mirror.
"""

__version__ = "0.4.0"
