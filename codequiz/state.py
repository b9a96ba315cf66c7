"""
Global application state
Shared resources accessible across all modules
"""
from codequiz.core.events import EventBus
from codequiz.core.store import DocumentStore
from codequiz.models import Settings

# Change channel for realtime subscribers
EVENT_BUS: EventBus = EventBus()

# Document store publishing every write on EVENT_BUS
STORE: DocumentStore = DocumentStore(EVENT_BUS)

# Loaded at startup; defaults until then
SETTINGS: Settings = Settings()
