"""Archive backends: compress a directory to one file and back."""

from .base import Archiver, temporary_archive
from .inprocess import InProcessArchiver
from .tar import TarArchiver

__all__ = ["Archiver", "InProcessArchiver", "TarArchiver", "temporary_archive"]
