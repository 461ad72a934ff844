"""Long-running workspace support - file watching."""

from smalise.daemon.watcher import ChangeBatch, SmaliWatcher

__all__ = ["ChangeBatch", "SmaliWatcher"]
