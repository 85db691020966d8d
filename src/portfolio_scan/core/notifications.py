"""Notification events for newly identified vulnerabilities"""

from abc import ABC, abstractmethod
from typing import Iterable, List

from .models import (
    Component,
    NewVulnerabilityIdentified,
    NotificationEvent,
    NotificationGroup,
    NotificationLevel,
    NotificationScope,
    Project,
    Vulnerability,
)


NEW_VULNERABILITY_TITLE = "New Vulnerability Identified"
NEW_VULNERABILITY_CONTENT = "A new vulnerability was discovered in the following component:"


class NotificationBus(ABC):
    """Delivery is the bus's concern; the emitter only dispatches"""

    @abstractmethod
    def dispatch(self, event: NotificationEvent):
        pass


class CollectingNotificationBus(NotificationBus):
    """Keeps dispatched events in memory"""

    def __init__(self):
        self.events: List[NotificationEvent] = []

    def dispatch(self, event: NotificationEvent):
        self.events.append(event)

    def clear(self):
        self.events.clear()


class NotificationEmitter:
    """Turns a new association into a NotificationEvent on the bus"""

    def __init__(self, bus: NotificationBus):
        self.bus = bus

    def emit_new_association(self, vulnerability: Vulnerability, component: Component,
                             affected_projects: Iterable[Project]) -> NotificationEvent:
        """
        Dispatch one new-vulnerability event

        Args:
            vulnerability: Newly associated vulnerability
            component: Component it was found in
            affected_projects: Projects depending on the component

        Returns:
            The dispatched event
        """
        event = NotificationEvent(
            scope=NotificationScope.PORTFOLIO,
            group=NotificationGroup.NEW_VULNERABILITY,
            title=NEW_VULNERABILITY_TITLE,
            content=NEW_VULNERABILITY_CONTENT,
            level=NotificationLevel.INFORMATIONAL,
            subject=NewVulnerabilityIdentified(
                vulnerability=vulnerability,
                component=component,
                affected_projects=frozenset(affected_projects),
            ),
        )
        self.bus.dispatch(event)
        return event
