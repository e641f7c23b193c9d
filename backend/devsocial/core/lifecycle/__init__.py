"""Worker lifecycle: phases, events and the listener dispatcher."""

from devsocial.core.lifecycle.dispatcher import LifecycleDispatcher, LifecycleListener
from devsocial.core.lifecycle.events import LifecycleEvent, LifecyclePhase

__all__ = ["LifecycleDispatcher", "LifecycleEvent", "LifecycleListener", "LifecyclePhase"]
