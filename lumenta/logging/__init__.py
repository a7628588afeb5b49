"""Event journaling."""

from lumenta.logging.event_journal import EventJournal

__all__ = ["EventJournal"]
